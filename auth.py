"""Current-user helpers.

Sign-in is handled by an external identity provider which stores the
signed-in user's id (and optionally its id_token) in the Flask session.
"""
from typing import Optional

from flask import current_app, session


def current_user_id() -> Optional[str]:
    return session.get('user_id') or None


def is_authenticated() -> bool:
    return current_user_id() is not None


def current_id_token() -> Optional[str]:
    return session.get('id_token')


def user_is_in_role(repository, role_name: str) -> bool:
    user_id = current_user_id()
    if user_id is None:
        return False
    return any(
        r.role is not None and r.role.role_name == role_name
        for r in repository.get_user_roles(user_id)
    )


def user_is_admin(repository) -> bool:
    return user_is_in_role(repository, current_app.config['ADMIN_ROLE'])


def can_access_version(repository, version) -> bool:
    """Whether the current user (possibly anonymous) may view ``version``."""
    return repository.can_user_access_version(current_user_id(), version.id)
