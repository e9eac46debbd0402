from studio_booking.flow.form import BookingForm, FieldStatus
from studio_booking.flow.state_machine import BookingFlowStateMachine, FlowState, FlowTrigger

__all__ = [
    "BookingForm",
    "FieldStatus",
    "BookingFlowStateMachine",
    "FlowState",
    "FlowTrigger",
]
