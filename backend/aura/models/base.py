"""Base class for rows read from the relational backend"""
from pydantic import BaseModel, ConfigDict


class Row(BaseModel):
    """A table row as returned by the REST API; unknown columns are ignored"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_insert(self) -> dict:
        """Column values for an insert, leaving server defaults (id, timestamps) to the backend"""
        return self.model_dump(exclude_none=True, exclude={"id", "created_at", "updated_at"})
