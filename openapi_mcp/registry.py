"""
API Registry

CRUD over the Store. Each mutation runs under exclusive access to the
in-memory document and is followed by a full persist with no lock held.
If the persist fails the in-memory change stays applied.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from .base import ConflictError, NotFoundError, ValidationError
from .models import ApiDefinition, ApiStatus, utc_now
from .store import Store

logger = logging.getLogger(__name__)


class StatusFilter(str, Enum):
    ALL = "all"
    ENABLED = "enabled"
    DISABLED = "disabled"


def _copy(api: ApiDefinition) -> ApiDefinition:
    return api.model_copy(deep=True)


class ApiRegistry:
    """Registry of API definitions backed by a shared Store."""

    def __init__(self, store: Store):
        self.store = store

    # ========== Queries ==========

    async def list_apis(
        self,
        status: StatusFilter = StatusFilter.ALL,
        tag: Optional[str] = None,
    ) -> List[ApiDefinition]:
        status = StatusFilter(status)
        async with self.store.read() as doc:
            apis = [_copy(api) for api in doc.apis]

        if status == StatusFilter.ENABLED:
            apis = [api for api in apis if api.status == ApiStatus.ENABLED]
        elif status == StatusFilter.DISABLED:
            apis = [api for api in apis if api.status == ApiStatus.DISABLED]

        if tag is not None:
            apis = [api for api in apis if tag in api.tags]

        return apis

    async def list_enabled_apis(self) -> List[ApiDefinition]:
        return await self.list_apis(StatusFilter.ENABLED)

    async def list_apis_by_tag(self, tag: str) -> List[ApiDefinition]:
        return await self.list_apis(StatusFilter.ALL, tag=tag)

    async def get_api(self, api_id: str) -> Optional[ApiDefinition]:
        async with self.store.read() as doc:
            for api in doc.apis:
                if api.id == api_id:
                    return _copy(api)
        return None

    async def get_api_by_name(self, name: str) -> Optional[ApiDefinition]:
        async with self.store.read() as doc:
            for api in doc.apis:
                if api.name == name:
                    return _copy(api)
        return None

    async def resolve(self, api_id: str = None, name: str = None) -> ApiDefinition:
        """
        Look a definition up by id, or by name when no id is given.

        Raises:
            NotFoundError: nothing matches
            ValidationError: neither id nor name was provided
        """
        if api_id:
            api = await self.get_api(api_id)
            if api is None:
                raise NotFoundError(f"API with id '{api_id}' not found")
            return api
        if name:
            api = await self.get_api_by_name(name)
            if api is None:
                raise NotFoundError(f"API with name '{name}' not found")
            return api
        raise ValidationError("Either id or name must be provided")

    # ========== Mutations ==========

    async def add_api(self, api: ApiDefinition) -> ApiDefinition:
        """Register a new definition; assigns id and timestamps."""
        async with self.store.write() as doc:
            if any(existing.name == api.name for existing in doc.apis):
                raise ConflictError(f"API with name '{api.name}' already exists")

            created = ApiDefinition.new(
                name=api.name,
                description=api.description,
                base_url=api.base_url,
                path=api.path,
                method=api.method,
                parameters=api.parameters,
                request_body=api.request_body,
                responses=api.responses,
                authentication=api.authentication,
                headers=api.headers,
                status=api.status,
                tags=api.tags,
            ).model_copy(deep=True)
            doc.apis.append(created)
            result = _copy(created)

        await self.store.persist()
        logger.info(f"Added API '{result.name}' ({result.id})")
        return result

    async def update_api(self, api_id: str, updated: ApiDefinition) -> ApiDefinition:
        """Replace a definition in place, keeping its id and creation time."""
        async with self.store.write() as doc:
            index = self._index_of(doc.apis, api_id)

            if any(i != index and existing.name == updated.name for i, existing in enumerate(doc.apis)):
                raise ConflictError(f"API with name '{updated.name}' already exists")

            replacement = updated.model_copy(
                update={
                    "id": api_id,
                    "created_at": doc.apis[index].created_at,
                    "updated_at": utc_now(),
                },
                deep=True,
            )
            doc.apis[index] = replacement
            result = _copy(replacement)

        await self.store.persist()
        logger.info(f"Updated API '{result.name}' ({result.id})")
        return result

    async def delete_api(self, api_id: str) -> ApiDefinition:
        async with self.store.write() as doc:
            index = self._index_of(doc.apis, api_id)
            removed = doc.apis.pop(index)

        await self.store.persist()
        logger.info(f"Deleted API '{removed.name}' ({removed.id})")
        return removed

    async def set_status(self, api_id: str, status: ApiStatus) -> ApiDefinition:
        status = ApiStatus(status)
        async with self.store.write() as doc:
            api = doc.apis[self._index_of(doc.apis, api_id)]
            api.status = status
            api.updated_at = utc_now()
            result = _copy(api)

        await self.store.persist()
        logger.info(f"API '{result.name}' is now {status.value}")
        return result

    async def enable_api(self, api_id: str) -> ApiDefinition:
        return await self.set_status(api_id, ApiStatus.ENABLED)

    async def disable_api(self, api_id: str) -> ApiDefinition:
        return await self.set_status(api_id, ApiStatus.DISABLED)

    @staticmethod
    def _index_of(apis: List[ApiDefinition], api_id: str) -> int:
        for index, api in enumerate(apis):
            if api.id == api_id:
                return index
        raise NotFoundError(f"API with id '{api_id}' not found")

    # ========== Variables ==========

    async def get_variables(self) -> Dict[str, str]:
        async with self.store.read() as doc:
            return dict(doc.variables)

    async def get_variable(self, key: str) -> Optional[str]:
        async with self.store.read() as doc:
            return doc.variables.get(key)

    async def set_variable(self, key: str, value: str) -> None:
        async with self.store.write() as doc:
            doc.variables[key] = value
        await self.store.persist()
        logger.info(f"Set variable '{key}'")

    async def set_variables(self, variables: Dict[str, str]) -> None:
        async with self.store.write() as doc:
            doc.variables.update(variables)
        await self.store.persist()

    async def delete_variable(self, key: str) -> bool:
        """Remove a variable; the store is only persisted when something was removed."""
        async with self.store.write() as doc:
            deleted = doc.variables.pop(key, None) is not None
        if deleted:
            await self.store.persist()
            logger.info(f"Deleted variable '{key}'")
        return deleted
