from abc import ABC, abstractmethod
from typing import Any, MutableMapping


class SessionProjection(ABC):
    """
    The slice of a browser session the authenticator touches: a few named
    slots plus, where the backing store allows it, destroying the session.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def destroy(self) -> None:
        raise NotImplementedError("This session can't be destroyed")


class MappingSession(SessionProjection):
    """Binds the slots to a dict-like session, e.g. Starlette's ``request.session``."""

    def __init__(self, data: MutableMapping[str, Any], destroyable: bool = True):
        self.data = data
        self.destroyable = destroyable

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def destroy(self) -> None:
        if not self.destroyable:
            return super().destroy()
        self.data.clear()
