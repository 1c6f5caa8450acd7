from .user import AuthenticatedUser, UserRole
from .points import RewardTier, TierProgress
from .rewards import RewardItem, RedemptionResult
from .location import LocationCreate, LocationRecord, LocationUpdate
from .sync import PendingMutation, SyncReport
