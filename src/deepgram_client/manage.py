"""
Account management: projects, keys, members, usage, balances and models.
"""

from typing import Any, Dict, Mapping, Union

from src.deepgram_client.errors import ArgumentError
from src.deepgram_client.options import KeyOptions
from src.deepgram_client.rest import RestClient
from src.deepgram_client.utils import to_options


class ManageClient:
    def __init__(self, rest: RestClient) -> None:
        self.rest = rest

    # Projects
    async def get_projects(self) -> Dict[str, Any]:
        return await self.rest.get("projects")

    async def get_project(self, project_id: str) -> Dict[str, Any]:
        return await self.rest.get(f"projects/{_id(project_id, 'project_id')}")

    async def delete_project(self, project_id: str) -> Dict[str, Any]:
        return await self.rest.delete(f"projects/{_id(project_id, 'project_id')}")

    # Keys
    async def get_keys(self, project_id: str) -> Dict[str, Any]:
        return await self.rest.get(f"projects/{_id(project_id, 'project_id')}/keys")

    async def get_key(self, project_id: str, key_id: str) -> Dict[str, Any]:
        return await self.rest.get(
            f"projects/{_id(project_id, 'project_id')}/keys/{_id(key_id, 'key_id')}"
        )

    async def create_key(
        self, project_id: str, options: Union[KeyOptions, Mapping[str, Any]]
    ) -> Dict[str, Any]:
        """
        Create an API key.

        Args:
            project_id (str): Owning project.
            options: ``KeyOptions`` or a dict with at least ``comment`` and ``scopes``.
        """
        body = to_options(options)
        if not body.get("comment"):
            raise ArgumentError("Key comment cannot be empty", "non-empty comment", repr(body.get("comment")))
        return await self.rest.post(f"projects/{_id(project_id, 'project_id')}/keys", json=body)

    async def delete_key(self, project_id: str, key_id: str) -> Dict[str, Any]:
        return await self.rest.delete(
            f"projects/{_id(project_id, 'project_id')}/keys/{_id(key_id, 'key_id')}"
        )

    # Members
    async def get_members(self, project_id: str) -> Dict[str, Any]:
        return await self.rest.get(f"projects/{_id(project_id, 'project_id')}/members")

    async def remove_member(self, project_id: str, member_id: str) -> Dict[str, Any]:
        return await self.rest.delete(
            f"projects/{_id(project_id, 'project_id')}/members/{_id(member_id, 'member_id')}"
        )

    # Usage
    async def get_usage_requests(self, project_id: str) -> Dict[str, Any]:
        return await self.rest.get(f"projects/{_id(project_id, 'project_id')}/requests")

    async def get_usage_summary(self, project_id: str) -> Dict[str, Any]:
        return await self.rest.get(f"projects/{_id(project_id, 'project_id')}/usage")

    # Balances
    async def get_balances(self, project_id: str) -> Dict[str, Any]:
        return await self.rest.get(f"projects/{_id(project_id, 'project_id')}/balances")

    # Models
    async def get_models(self, project_id: str) -> Dict[str, Any]:
        return await self.rest.get(f"projects/{_id(project_id, 'project_id')}/models")

    async def get_model(self, project_id: str, model_id: str) -> Dict[str, Any]:
        return await self.rest.get(
            f"projects/{_id(project_id, 'project_id')}/models/{_id(model_id, 'model_id')}"
        )


def _id(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ArgumentError(f"{name} cannot be empty", "non-empty string", repr(value))
    return value
