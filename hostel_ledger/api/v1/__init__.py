from hostel_ledger.api.v1.router import router

__all__ = ["router"]
