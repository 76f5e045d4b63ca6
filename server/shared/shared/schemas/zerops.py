"""Typed projections of the infrastructure API responses the tools consume."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for API records: camelCase on the wire, unknown fields ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ClientRef(ApiModel):
    id: str
    account_name: str = ""


class ClientUser(ApiModel):
    client_id: str
    role_code: str = ""
    client: ClientRef | None = None


class UserInfo(ApiModel):
    id: str
    email: str = ""
    full_name: str = ""
    status: str = ""
    client_user_list: list[ClientUser] = Field(default_factory=list)

    @property
    def primary_client_id(self) -> str | None:
        return self.client_user_list[0].client_id if self.client_user_list else None


class Region(ApiModel):
    name: str
    address: str = ""
    is_default: bool = False


class Project(ApiModel):
    id: str
    client_id: str = ""
    name: str
    description: str | None = None
    status: str = ""
    created: str | None = None
    tag_list: list[str] = Field(default_factory=list)


class ServiceStackTypeInfo(ApiModel):
    service_stack_type_name: str = ""
    service_stack_type_version_name: str = ""


class ServiceStack(ApiModel):
    id: str
    project_id: str = ""
    name: str
    status: str = ""
    mode: str | None = None
    service_stack_type_info: ServiceStackTypeInfo | None = None
    subdomain_access: bool | None = None
    created: str | None = None

    @property
    def type_name(self) -> str:
        info = self.service_stack_type_info
        if info is None:
            return "unknown"
        return info.service_stack_type_version_name or info.service_stack_type_name or "unknown"


class ServiceStackTypeVersion(ApiModel):
    name: str
    status: str = ""


class ServiceStackType(ApiModel):
    id: str = ""
    name: str
    category: str | None = None
    default_service_stack_version: ServiceStackTypeVersion | None = None
    service_stack_type_version_list: list[ServiceStackTypeVersion] = Field(default_factory=list)


class ProcessServiceStack(ApiModel):
    id: str
    name: str = ""


class Process(ApiModel):
    id: str
    action_name: str = ""
    status: str = ""
    project_id: str | None = None
    created: str | None = None
    started: str | None = None
    finished: str | None = None
    service_stacks: list[ProcessServiceStack] = Field(default_factory=list)


class EnvVariable(ApiModel):
    id: str = ""
    key: str
    content: str = ""


class ProjectLogAccess(ApiModel):
    """Signed log endpoint in the form ``"<METHOD> <host/path?query>"``."""

    url: str
    expiration: str | None = None


class LogEntry(ApiModel):
    timestamp: str = ""
    hostname: str = ""
    app_name: str = ""
    facility_label: str = ""
    severity: int | None = None
    severity_label: str = ""
    priority: int | None = None
    proc_id: str = ""
    tag: str = ""
    message: str = ""
    content: str = ""
    structured_data: str = ""


class ImportedService(ApiModel):
    id: str = ""
    name: str
    error: dict | None = None


class ImportResult(ApiModel):
    project_id: str = ""
    project_name: str = ""
    service_stacks: list[ImportedService] = Field(default_factory=list)
