# Authentication module

from arpu.modules.auth.dependencies import (
    get_current_user,
    get_current_admin,
    get_current_coordinator,
    get_optional_user,
)
