"""
Service layer root package.

Each subpackage implements application use-cases on top of:

- SQLAlchemy models (hostel_ledger.models.*)
- Repositories (hostel_ledger.repositories.*)
- Pydantic schemas (hostel_ledger.schemas.*)
- Common service infrastructure (hostel_ledger.services.base)

Typical pattern for a service:

    class SomeService(BaseService[Model, Repository]):
        def __init__(self, repository, db_session) -> None:
            super().__init__(repository, db_session)

        def do_something(self, ...) -> ServiceResult[...]:
            try:
                ...
            except Exception as e:
                return self._handle_exception(e, "do something")
"""
