"""Collection helpers - Walk a collection's folders and pull out requests.

Auth inheritance follows Postman: a request without its own auth (or with
type "inherit") uses the nearest folder auth, then the collection auth.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from postman_core.models import Auth, Collection, CollectionItem, Environment, Request

INHERIT_AUTH = "inherit"


@dataclass(frozen=True)
class CollectionRequest:
    """A request found in a collection, with its folder path."""

    path: tuple[str, ...]
    item: CollectionItem
    request: Request

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def display_path(self) -> str:
        return "/".join(self.path)


def _declares_auth(auth: Auth | None) -> bool:
    return auth is not None and auth.type != INHERIT_AUTH


def iter_requests(collection: Collection) -> Iterator[CollectionRequest]:
    """Yield every request depth-first, in document order.

    path includes the item's own name. The yielded request is a copy with
    inherited auth filled in; the collection itself is not modified.
    """
    inherited = collection.auth if _declares_auth(collection.auth) else None
    yield from _walk(collection.item, (), inherited)


def _walk(
    items: list[CollectionItem],
    parent_path: tuple[str, ...],
    inherited: Auth | None,
) -> Iterator[CollectionRequest]:
    for item in items:
        path = parent_path + (item.name,)
        if item.request is not None:
            request = item.request
            if not _declares_auth(request.auth) and inherited is not None:
                request = request.model_copy(update={"auth": inherited})
            yield CollectionRequest(path=path, item=item, request=request)
        elif item.item:
            folder_auth = item.auth if _declares_auth(item.auth) else inherited
            yield from _walk(item.item, path, folder_auth)


def find_request(collection: Collection, path: str | tuple[str, ...]) -> CollectionRequest | None:
    """Look up a request by folder path, e.g. "Users/Get user"."""
    wanted = tuple(path.split("/")) if isinstance(path, str) else tuple(path)
    for found in iter_requests(collection):
        if found.path == wanted:
            return found
    return None


def collection_environment(collection: Collection) -> Environment | None:
    """Turn collection-level variables into an Environment.

    Variables with an empty key are dropped. Returns None when nothing is left.
    """
    variables = [var for var in collection.variable or [] if var.key]
    if not variables:
        return None
    return Environment(name=f"{collection.info.name} - Variables", values=variables)
