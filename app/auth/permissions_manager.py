"""Permissions Management"""
import logging
import yaml
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)


class PermissionsManager:
    """Manages role-to-permissions mapping from permissions.yml"""

    def __init__(self, permissions_file_path: str = None):
        if permissions_file_path is None:
            # Default to permissions.yml in project root
            permissions_file_path = Path(__file__).parent.parent.parent / "permissions.yml"

        self.role_permissions = self._load_permissions(permissions_file_path)

    def _load_permissions(self, file_path: Path) -> Dict[str, List[str]]:
        """Load role-to-permissions mapping from YAML file"""
        try:
            with open(file_path, 'r') as f:
                data = yaml.safe_load(f) or {}
                return data.get('roles', {})
        except (OSError, yaml.YAMLError):
            logger.exception("Could not load permissions from %s", file_path)
            return {}

    def get_permissions_for_roles(self, roles: List[str]) -> List[str]:
        """Convert list of roles to a sorted list of permissions"""
        permissions = set()
        for role in roles:
            permissions.update(self.role_permissions.get(role, []))
        return sorted(permissions)
