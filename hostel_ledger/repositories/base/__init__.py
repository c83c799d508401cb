from hostel_ledger.repositories.base.base_repository import BaseRepository, conflicting_field

__all__ = ["BaseRepository", "conflicting_field"]
