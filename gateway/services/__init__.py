from gateway.services.message_service import (
    find_inbound_by_sid,
    list_messages,
    log_message,
    log_send_result,
    save_message,
    update_delivery_status,
)
from gateway.services.session_service import (
    SessionCreateError,
    get_or_create_session,
    list_sessions,
    touch_session,
)
from gateway.services.state_machine import (
    DeliveryStatus,
    InvalidTransitionError,
    SessionState,
    activate,
    can_advance_delivery,
    can_transition,
    transition,
)
