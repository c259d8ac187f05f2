# app/schemas/__init__.py
from .scheduling_policy import (
    SchedulingPolicyOptions,
    SchedulingPolicyUpdateRequest,
    SchedulingPolicyResponse
)

from .availability import AvailableSlotsResponse

from .invitation import (
    InvitationActionRequest,
    PendingInvitation,
    PendingInvitationsResponse,
    MessageResponse
)

from .booking import (
    UnassignedBooking,
    UnassignedBookingsResponse,
    GrabJobRequest,
    SchedulingOutcomeResponse
)
