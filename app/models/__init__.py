from .role import Role  # noqa: F401
from .user import User, user_roles  # noqa: F401
from .profile import Profile  # noqa: F401
from .payment import PaymentCategory, Payment  # noqa: F401
from .pledge import Pledge  # noqa: F401
from .activity_log import ActivityLog  # noqa: F401
from .attendance import AttendanceRecord, ChurchService  # noqa: F401
from .event import Event  # noqa: F401
from .department import Department, DepartmentMember  # noqa: F401
