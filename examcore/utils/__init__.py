"""
Utils Package
"""
from examcore.utils.helpers import (
    now_utc,
    as_utc,
    to_display_tz,
    get_current_user_id,
    get_current_user,
    require_login,
    require_admin
)

__all__ = [
    'now_utc',
    'as_utc',
    'to_display_tz',
    'get_current_user_id',
    'get_current_user',
    'require_login',
    'require_admin'
]
