"""Git integration for edo-tools."""

from edo_tools.git.status import ACTIONABLE_STATUSES, FileStatus, StatusCode, filter_changed
from edo_tools.git.utils import GitRepoContext, PushOutcome

__all__ = [
	"ACTIONABLE_STATUSES",
	"FileStatus",
	"GitRepoContext",
	"PushOutcome",
	"StatusCode",
	"filter_changed",
]
