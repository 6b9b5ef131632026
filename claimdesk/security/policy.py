from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from claimdesk.models.tenancy import Role
from claimdesk.settings import get_settings

logger = logging.getLogger(__name__)


class PolicyModel(BaseModel):
    operations: dict[str, list[Role]] = Field(default_factory=dict)


class Policy:
    """
    Runtime helper around the validated operation -> roles table.

    Unknown operations fail closed: no role may perform them.
    """

    def __init__(self, model: PolicyModel):
        self.model = model
        self._roles: dict[str, frozenset[Role]] = {
            name: frozenset(roles) for name, roles in model.operations.items()
        }

    @property
    def operations(self) -> frozenset[str]:
        return frozenset(self._roles)

    def roles_for(self, operation: str) -> frozenset[Role]:
        return self._roles.get(operation, frozenset())

    def allows(self, role: Role, operation: str) -> bool:
        if operation not in self._roles:
            logger.debug("Policy: unknown operation=%s (fail closed)", operation)
            return False
        return role in self._roles[operation]


def load_policy(path: Path) -> Policy:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "policy" not in raw:
        raise ValueError(f"Missing top-level 'policy' key in config: {path}")

    model = PolicyModel.model_validate(raw["policy"])
    return Policy(model)


@lru_cache
def get_policy() -> Policy:
    path = get_settings().resolved_policy_path()
    policy = load_policy(path)
    logger.info("Loaded authorization policy: %s (%d operations)", path, len(policy.operations))
    return policy
