"""Cloud app client: organizations, locations, robots, parts and access control."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Sequence

from viam.gen.app.v1 import app_pb2 as app_pb
from viam.gen.common.v1.common_pb2 import LogEntry

from ..resource import AppServiceClient
from ..schema import service
from ..utils import dict_to_struct

Authorization = app_pb.Authorization
AuthorizedPermissions = app_pb.AuthorizedPermissions
FragmentVisibility = app_pb.FragmentVisibility
Visibility = app_pb.Visibility
RegistryItemStatus = app_pb.RegistryItemStatus
Model = app_pb.Model


def create_auth(
    organization_id: str,
    entity_id: str,
    role: str,
    resource_type: str,
    identity_type: str,
    resource_id: str,
) -> Authorization:
    """Build a role authorization.

    Args:
        role: ``"owner"`` or ``"operator"``.
        resource_type: ``"robot"``, ``"location"`` or ``"organization"``.
        identity_type: kind of identity *entity_id* is, e.g. ``"api-key"``.
    """
    return Authorization(
        authorization_type="role",
        authorization_id=f"{resource_type}_{role}",
        resource_type=resource_type,
        resource_id=resource_id,
        identity_id=entity_id,
        organization_id=organization_id,
        identity_type=identity_type,
    )


def create_auth_for_new_api_key(
    organization_id: str, role: str, resource_type: str, resource_id: str
) -> Authorization:
    """Authorization for a key that does not exist yet (empty identity)."""
    return create_auth(organization_id, "", role, resource_type, "api-key", resource_id)


def create_permission(
    resource_type: str, resource_id: str, permissions: Sequence[str]
) -> AuthorizedPermissions:
    return AuthorizedPermissions(
        resource_type=resource_type, resource_id=resource_id, permissions=permissions
    )


def _optional(message, field: str):
    return getattr(message, field) if message.HasField(field) else None


class AppClient(AppServiceClient):
    SERVICE = service(app_pb, "AppService")

    # ── Users / organizations ────────────────────────────────────────

    async def get_user_id_by_email(self, email: str) -> str:
        return (await self._call("GetUserIDByEmail", email=email)).user_id

    async def create_organization(self, name: str) -> Optional[app_pb.Organization]:
        response = await self._call("CreateOrganization", name=name)
        return _optional(response, "organization")

    async def list_organizations(self) -> list[app_pb.Organization]:
        return list((await self._call("ListOrganizations")).organizations)

    async def get_organizations_with_access_to_location(
        self, location_id: str
    ) -> list[app_pb.OrganizationIdentity]:
        response = await self._call(
            "GetOrganizationsWithAccessToLocation", location_id=location_id
        )
        return list(response.organization_identities)

    async def list_organizations_by_user(self, user_id: str) -> list[app_pb.OrgDetails]:
        return list((await self._call("ListOrganizationsByUser", user_id=user_id)).orgs)

    async def get_organization(self, organization_id: str) -> Optional[app_pb.Organization]:
        response = await self._call("GetOrganization", organization_id=organization_id)
        return _optional(response, "organization")

    async def get_organization_namespace_availability(self, public_namespace: str) -> bool:
        response = await self._call(
            "GetOrganizationNamespaceAvailability", public_namespace=public_namespace
        )
        return response.available

    async def update_organization(
        self,
        organization_id: str,
        name: Optional[str] = None,
        public_namespace: Optional[str] = None,
        region: Optional[str] = None,
        cid: Optional[str] = None,
    ) -> Optional[app_pb.Organization]:
        """Update the given fields; ``None`` leaves a field unchanged."""
        response = await self._call(
            "UpdateOrganization",
            organization_id=organization_id,
            name=name,
            public_namespace=public_namespace,
            region=region,
            cid=cid,
        )
        return _optional(response, "organization")

    async def delete_organization(self, organization_id: str) -> None:
        await self._call("DeleteOrganization", organization_id=organization_id)

    async def list_organization_members(
        self, organization_id: str
    ) -> tuple[list[app_pb.OrganizationMember], list[app_pb.OrganizationInvite]]:
        response = await self._call("ListOrganizationMembers", organization_id=organization_id)
        return list(response.members), list(response.invites)

    async def delete_organization_member(self, organization_id: str, user_id: str) -> None:
        await self._call(
            "DeleteOrganizationMember", organization_id=organization_id, user_id=user_id
        )

    # ── Invites ──────────────────────────────────────────────────────

    async def create_organization_invite(
        self,
        organization_id: str,
        email: str,
        authorizations: Sequence[Authorization],
        send_email_invite: bool = True,
    ) -> Optional[app_pb.OrganizationInvite]:
        """Invite *email*; with ``send_email_invite=False`` the user is added directly."""
        response = await self._call(
            "CreateOrganizationInvite",
            organization_id=organization_id,
            email=email,
            authorizations=authorizations,
            send_email_invite=send_email_invite,
        )
        return _optional(response, "invite")

    async def update_organization_invite_authorizations(
        self,
        organization_id: str,
        email: str,
        add_authorizations: Sequence[Authorization] = (),
        remove_authorizations: Sequence[Authorization] = (),
    ) -> Optional[app_pb.OrganizationInvite]:
        response = await self._call(
            "UpdateOrganizationInviteAuthorizations",
            organization_id=organization_id,
            email=email,
            add_authorizations=add_authorizations,
            remove_authorizations=remove_authorizations,
        )
        return _optional(response, "invite")

    async def delete_organization_invite(self, organization_id: str, email: str) -> None:
        await self._call(
            "DeleteOrganizationInvite", organization_id=organization_id, email=email
        )

    async def resend_organization_invite(
        self, organization_id: str, email: str
    ) -> Optional[app_pb.OrganizationInvite]:
        response = await self._call(
            "ResendOrganizationInvite", organization_id=organization_id, email=email
        )
        return _optional(response, "invite")

    # ── Locations ────────────────────────────────────────────────────

    async def create_location(
        self, organization_id: str, name: str, parent_location_id: Optional[str] = None
    ) -> Optional[app_pb.Location]:
        response = await self._call(
            "CreateLocation",
            organization_id=organization_id,
            name=name,
            parent_location_id=parent_location_id,
        )
        return _optional(response, "location")

    async def get_location(self, location_id: str) -> Optional[app_pb.Location]:
        response = await self._call("GetLocation", location_id=location_id)
        return _optional(response, "location")

    async def update_location(
        self,
        location_id: str,
        name: Optional[str] = None,
        parent_location_id: Optional[str] = None,
        region: Optional[str] = None,
    ) -> Optional[app_pb.Location]:
        response = await self._call(
            "UpdateLocation",
            location_id=location_id,
            name=name,
            parent_location_id=parent_location_id,
            region=region,
        )
        return _optional(response, "location")

    async def delete_location(self, location_id: str) -> None:
        await self._call("DeleteLocation", location_id=location_id)

    async def list_locations(self, organization_id: str) -> list[app_pb.Location]:
        response = await self._call("ListLocations", organization_id=organization_id)
        return list(response.locations)

    async def share_location(self, organization_id: str, location_id: str) -> None:
        await self._call(
            "ShareLocation", location_id=location_id, organization_id=organization_id
        )

    async def unshare_location(self, organization_id: str, location_id: str) -> None:
        await self._call(
            "UnshareLocation", location_id=location_id, organization_id=organization_id
        )

    async def location_auth(self, location_id: str) -> Optional[app_pb.LocationAuth]:
        return _optional(await self._call("LocationAuth", location_id=location_id), "auth")

    async def create_location_secret(self, location_id: str) -> Optional[app_pb.LocationAuth]:
        response = await self._call("CreateLocationSecret", location_id=location_id)
        return _optional(response, "auth")

    async def delete_location_secret(self, location_id: str, secret_id: str) -> None:
        await self._call(
            "DeleteLocationSecret", location_id=location_id, secret_id=secret_id
        )

    # ── Robots ───────────────────────────────────────────────────────

    async def get_robot(self, robot_id: str) -> Optional[app_pb.Robot]:
        return _optional(await self._call("GetRobot", id=robot_id), "robot")

    async def list_robots(self, location_id: str) -> list[app_pb.Robot]:
        return list((await self._call("ListRobots", location_id=location_id)).robots)

    async def new_robot(self, location_id: str, name: str) -> str:
        """Create a robot in *location_id*; returns its ID."""
        return (await self._call("NewRobot", name=name, location=location_id)).id

    async def update_robot(
        self, robot_id: str, location_id: str, name: str
    ) -> Optional[app_pb.Robot]:
        response = await self._call("UpdateRobot", id=robot_id, location=location_id, name=name)
        return _optional(response, "robot")

    async def delete_robot(self, robot_id: str) -> None:
        await self._call("DeleteRobot", id=robot_id)

    async def get_rover_rental_robots(self, org_id: str) -> list[app_pb.RoverRentalRobot]:
        return list((await self._call("GetRoverRentalRobots", org_id=org_id)).robots)

    # ── Robot parts ──────────────────────────────────────────────────

    async def get_robot_parts(self, robot_id: str) -> list[app_pb.RobotPart]:
        return list((await self._call("GetRobotParts", robot_id=robot_id)).parts)

    async def get_robot_part(self, part_id: str) -> app_pb.GetRobotPartResponse:
        return await self._call("GetRobotPart", id=part_id)

    async def get_robot_part_logs(
        self,
        part_id: str,
        filter: Optional[str] = None,
        levels: Optional[Sequence[str]] = None,
        page_token: str = "",
    ) -> app_pb.GetRobotPartLogsResponse:
        """One page of logs, newest first, plus the token for the next page."""
        return await self._call(
            "GetRobotPartLogs",
            id=part_id,
            filter=filter,
            levels=levels,
            page_token=page_token,
        )

    async def tail_robot_part_logs(
        self,
        part_id: str,
        queue: list[LogEntry],
        filter: Optional[str] = None,
        errors_only: bool = True,
        *,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Append streamed log entries to *queue* as they arrive."""
        async for response in self._stream(
            "TailRobotPartLogs",
            id=part_id,
            errors_only=errors_only,
            filter=filter,
            stop_event=stop_event,
        ):
            queue.extend(response.logs)

    async def get_robot_part_history(
        self, part_id: str
    ) -> list[app_pb.RobotPartHistoryEntry]:
        return list((await self._call("GetRobotPartHistory", id=part_id)).history)

    async def update_robot_part(
        self, part_id: str, name: str, robot_config: Mapping[str, Any]
    ) -> Optional[app_pb.RobotPart]:
        response = await self._call(
            "UpdateRobotPart", id=part_id, name=name, robot_config=dict_to_struct(robot_config)
        )
        return _optional(response, "part")

    async def new_robot_part(self, robot_id: str, part_name: str) -> str:
        response = await self._call("NewRobotPart", robot_id=robot_id, part_name=part_name)
        return response.part_id

    async def delete_robot_part(self, part_id: str) -> None:
        await self._call("DeleteRobotPart", part_id=part_id)

    async def mark_part_as_main(self, part_id: str) -> None:
        await self._call("MarkPartAsMain", part_id=part_id)

    async def mark_part_for_restart(self, part_id: str) -> None:
        await self._call("MarkPartForRestart", part_id=part_id)

    async def get_robot_api_keys(self, robot_id: str) -> list[app_pb.APIKeyWithAuthorizations]:
        return list((await self._call("GetRobotAPIKeys", robot_id=robot_id)).api_keys)

    async def create_robot_part_secret(self, part_id: str) -> Optional[app_pb.RobotPart]:
        """Add a secret to *part_id*; returns the part with its new secret."""
        return _optional(await self._call("CreateRobotPartSecret", part_id=part_id), "part")

    async def delete_robot_part_secret(self, part_id: str, secret_id: str) -> None:
        await self._call("DeleteRobotPartSecret", part_id=part_id, secret_id=secret_id)

    # ── Fragments ────────────────────────────────────────────────────

    async def list_fragments(
        self,
        organization_id: str,
        show_public: bool = True,
        fragment_visibility: Sequence[int] = (),
    ) -> list[app_pb.Fragment]:
        """Fragments visible to *organization_id*.

        A non-empty *fragment_visibility* (``FragmentVisibility`` values)
        takes precedence over *show_public*.
        """
        response = await self._call(
            "ListFragments",
            organization_id=organization_id,
            show_public=show_public,
            fragment_visibility=fragment_visibility,
        )
        return list(response.fragments)

    async def get_fragment(self, fragment_id: str) -> Optional[app_pb.Fragment]:
        return _optional(await self._call("GetFragment", id=fragment_id), "fragment")

    async def create_fragment(
        self,
        organization_id: str,
        name: str,
        config: Mapping[str, Any],
        visibility: Optional[int] = None,
    ) -> Optional[app_pb.Fragment]:
        response = await self._call(
            "CreateFragment",
            name=name,
            config=dict_to_struct(config),
            organization_id=organization_id,
            visibility=visibility,
        )
        return _optional(response, "fragment")

    async def update_fragment(
        self,
        fragment_id: str,
        name: str,
        config: Mapping[str, Any],
        public: Optional[bool] = None,
        visibility: Optional[int] = None,
    ) -> Optional[app_pb.Fragment]:
        """Replace a fragment's name and config.

        *public* and *visibility* leave the fragment's visibility unchanged
        when ``None``; if both are given they must agree.
        """
        response = await self._call(
            "UpdateFragment",
            id=fragment_id,
            name=name,
            config=dict_to_struct(config),
            public=public,
            visibility=visibility,
        )
        return _optional(response, "fragment")

    async def delete_fragment(self, fragment_id: str) -> None:
        await self._call("DeleteFragment", id=fragment_id)

    # ── Authorization ────────────────────────────────────────────────

    async def add_role(
        self,
        organization_id: str,
        entity_id: str,
        role: str,
        resource_type: str,
        resource_id: str,
    ) -> None:
        authorization = create_auth(
            organization_id, entity_id, role, resource_type, "", resource_id
        )
        await self._call("AddRole", authorization=authorization)

    async def remove_role(
        self,
        organization_id: str,
        entity_id: str,
        role: str,
        resource_type: str,
        resource_id: str,
    ) -> None:
        authorization = create_auth(
            organization_id, entity_id, role, resource_type, "", resource_id
        )
        await self._call("RemoveRole", authorization=authorization)

    async def change_role(
        self, old_authorization: Authorization, new_authorization: Authorization
    ) -> None:
        await self._call(
            "ChangeRole",
            old_authorization=old_authorization,
            new_authorization=new_authorization,
        )

    async def list_authorizations(
        self, organization_id: str, resource_ids: Optional[Sequence[str]] = None
    ) -> list[Authorization]:
        response = await self._call(
            "ListAuthorizations", organization_id=organization_id, resource_ids=resource_ids
        )
        return list(response.authorizations)

    async def check_permissions(
        self, permissions: Sequence[AuthorizedPermissions]
    ) -> list[AuthorizedPermissions]:
        """Return the subset of *permissions* the caller actually holds."""
        response = await self._call("CheckPermissions", permissions=permissions)
        return list(response.authorized_permissions)

    # ── Registry / modules ───────────────────────────────────────────

    async def get_registry_item(self, item_id: str) -> Optional[app_pb.RegistryItem]:
        return _optional(await self._call("GetRegistryItem", item_id=item_id), "item")

    async def create_registry_item(self, organization_id: str, name: str, type: int) -> None:
        """Register a new item; *type* is a ``PackageType`` value."""
        await self._call(
            "CreateRegistryItem", organization_id=organization_id, name=name, type=type
        )

    async def update_registry_item(
        self, item_id: str, type: int, description: str, visibility: int
    ) -> None:
        await self._call(
            "UpdateRegistryItem",
            item_id=item_id,
            type=type,
            description=description,
            visibility=visibility,
        )

    async def list_registry_items(
        self,
        organization_id: str,
        types: Sequence[int] = (),
        visibilities: Sequence[int] = (),
        platforms: Sequence[str] = (),
        statuses: Sequence[int] = (),
        search_term: Optional[str] = None,
        page_token: Optional[str] = None,
    ) -> list[app_pb.RegistryItem]:
        """Registry items of *organization_id*; an empty filter list matches everything."""
        response = await self._call(
            "ListRegistryItems",
            organization_id=organization_id,
            types=types,
            visibilities=visibilities,
            platforms=platforms,
            statuses=statuses,
            search_term=search_term,
            page_token=page_token,
        )
        return list(response.items)

    async def delete_registry_item(self, item_id: str) -> None:
        await self._call("DeleteRegistryItem", item_id=item_id)

    async def create_module(
        self, organization_id: str, name: str
    ) -> app_pb.CreateModuleResponse:
        """Create a module; the response carries ``module_id`` and ``url``."""
        return await self._call("CreateModule", organization_id=organization_id, name=name)

    async def update_module(
        self,
        module_id: str,
        visibility: int,
        url: str,
        description: str,
        models: Sequence[Model],
        entrypoint: str,
    ) -> str:
        response = await self._call(
            "UpdateModule",
            module_id=module_id,
            visibility=visibility,
            url=url,
            description=description,
            models=models,
            entrypoint=entrypoint,
        )
        return response.url

    async def get_module(self, module_id: str) -> Optional[app_pb.Module]:
        return _optional(await self._call("GetModule", module_id=module_id), "module")

    async def list_modules(self, organization_id: str) -> list[app_pb.Module]:
        response = await self._call("ListModules", organization_id=organization_id)
        return list(response.modules)

    # ── API keys ─────────────────────────────────────────────────────

    async def create_key(
        self, authorizations: Sequence[Authorization], name: str = ""
    ) -> tuple[str, str]:
        """Create an API key; returns ``(key, id)``."""
        response = await self._call("CreateKey", authorizations=authorizations, name=name)
        return response.key, response.id

    async def delete_key(self, key_id: str) -> None:
        await self._call("DeleteKey", id=key_id)

    async def list_keys(self, org_id: str) -> list[app_pb.APIKeyWithAuthorizations]:
        return list((await self._call("ListKeys", org_id=org_id)).api_keys)

    async def rotate_key(self, key_id: str) -> app_pb.RotateKeyResponse:
        return await self._call("RotateKey", id=key_id)

    async def create_key_from_existing_key_authorizations(
        self, key_id: str
    ) -> tuple[str, str]:
        """New key with the same authorizations as *key_id*; returns ``(key, id)``."""
        response = await self._call("CreateKeyFromExistingKeyAuthorizations", id=key_id)
        return response.key, response.id
