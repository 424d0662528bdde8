"""SessionContext model, user roles and capabilities.

Every state-changing or reading operation receives an explicit
SessionContext instead of consulting global auth state.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserRole(str, Enum):
    """Profile types of dashboard users."""

    Admin = "admin"
    Torre = "torre"
    Compras = "compras"
    Operacao = "operacao"
    Monitoramento = "monitoramento"


class Capability(str, Enum):
    """Permissions checked by the tracker before acting."""

    Delete = "can_delete"
    Edit = "can_edit"
    CreateInputs = "can_create_inputs"
    ChangeStatus = "can_change_status"
    ManageOccurrences = "can_manage_occurrences"
    ViewDashboard = "can_view_dashboard"
    ManageUsers = "can_manage_users"


_FIELD_ROLE_CAPABILITIES = frozenset(
    {
        Capability.CreateInputs,
        Capability.ChangeStatus,
        Capability.ManageOccurrences,
        Capability.ViewDashboard,
    }
)

ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.Admin: frozenset(Capability),
    UserRole.Torre: _FIELD_ROLE_CAPABILITIES | {Capability.Edit},
    UserRole.Compras: _FIELD_ROLE_CAPABILITIES,
    UserRole.Operacao: _FIELD_ROLE_CAPABILITIES,
    UserRole.Monitoramento: _FIELD_ROLE_CAPABILITIES,
}


class SessionContext(BaseModel):
    """Who is calling and what they may do.

    ``permissions`` overrides the role defaults when the auth collaborator
    resolves per-user grants.

    Example:
        ```python
        session = SessionContext(user_id="u1", operator_name="Ana", role=UserRole.Torre)
        session.has_permission(Capability.Delete)  # False
        ```
    """

    user_id: str = Field(..., min_length=1)
    operator_name: str = Field(default="", description="Display name used for attribution")
    role: UserRole
    permissions: frozenset[Capability] | None = None

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )

    @field_validator("operator_name")
    @classmethod
    def collapse_whitespace(cls, v: str) -> str:
        return " ".join(v.split())

    @property
    def capabilities(self) -> frozenset[Capability]:
        if self.permissions is not None:
            return self.permissions
        return ROLE_CAPABILITIES[self.role]

    def has_permission(self, capability: Capability | str) -> bool:
        """Check a capability by enum or by its ``can_*`` name."""
        try:
            capability = Capability(capability)
        except ValueError:
            return False
        return capability in self.capabilities
