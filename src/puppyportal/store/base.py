"""
Data store interface used by the agent tools and the growth endpoint.

The store is constructed per request for one caller; implementations are expected to scope
caller-owned tables by that caller (row-level security on the hosted backend).
"""

from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Dict,
    List,
    Optional,
)

Record = Dict[str, Any]

PUPPY_COLUMNS = (
    "id,name,gender,price,coat_type,registry,status,dob,ready_date,"
    "weight_birth,projected_adult_weight"
)
APPLICATION_COLUMNS = "id,created_at,status,puppy_id,notes"
WEIGHT_COLUMNS = "id,puppy_id,week,ounces,measured_at"
MILESTONE_COLUMNS = "id,puppy_id,week,done,note"


class StoreError(RuntimeError):
    """Raised when the data store rejects or fails an operation."""


class DataStore(ABC):
    """The operations the portal needs from its backing database."""

    @abstractmethod
    def list_puppies(self, status: str, limit: int) -> List[Record]:
        """Puppies with *status*, soonest ``ready_date`` first."""

    @abstractmethod
    def list_applications(self, buyer_id: str, limit: int) -> List[Record]:
        """Applications of *buyer_id*, newest first."""

    @abstractmethod
    def insert_message(self, author_id: str, author_email: Optional[str], body: str) -> None:
        """Store a message to the breeder."""

    @abstractmethod
    def get_assigned_puppy(self, buyer_id: str, puppy_id: str) -> Optional[Record]:
        """The puppy *puppy_id* if it is assigned to *buyer_id*, else *None*."""

    @abstractmethod
    def list_puppy_weights(self, puppy_id: str) -> List[Record]:
        """Weight log of a puppy, oldest measurement first."""

    @abstractmethod
    def list_puppy_milestones(self, puppy_id: str) -> List[Record]:
        """Recorded milestone rows of a puppy, by week."""

    def close(self) -> None:
        """Release any connection held by the store."""
