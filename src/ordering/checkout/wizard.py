"""Checkout wizard state machine.

    SHIPPING --NEXT--> BILLING --NEXT--> PAYMENT --ORDER_PLACED--> CONFIRMATION
    SHIPPING <--BACK-- BILLING <--BACK-- PAYMENT

NEXT is guarded by the validation of the step being left. BACK needs no
guard. CONFIRMATION is terminal and reachable only once the order exists.
``transition`` is pure: it reads the form and returns the next step.
"""

from enum import Enum

from protean.exceptions import InvalidOperationError, ValidationError

from ordering.checkout.forms import CheckoutForm
from ordering.checkout.validation import address_errors, payment_errors


class CheckoutStep(Enum):
    SHIPPING = 1
    BILLING = 2
    PAYMENT = 3
    CONFIRMATION = 4


class WizardEvent(Enum):
    NEXT = "next"
    BACK = "back"
    ORDER_PLACED = "order_placed"


# State machine transition map
_VALID_TRANSITIONS = {
    CheckoutStep.SHIPPING: {
        WizardEvent.NEXT: CheckoutStep.BILLING,
        WizardEvent.BACK: CheckoutStep.SHIPPING,  # Already at the first step
    },
    CheckoutStep.BILLING: {
        WizardEvent.NEXT: CheckoutStep.PAYMENT,
        WizardEvent.BACK: CheckoutStep.SHIPPING,
    },
    CheckoutStep.PAYMENT: {
        WizardEvent.BACK: CheckoutStep.BILLING,
        WizardEvent.ORDER_PLACED: CheckoutStep.CONFIRMATION,
    },
    CheckoutStep.CONFIRMATION: {},  # Terminal
}

# Events that leave a step only when its fields are valid
_GUARDED_EVENTS = {WizardEvent.NEXT, WizardEvent.ORDER_PLACED}


def step_errors(step: CheckoutStep, form: CheckoutForm) -> dict[str, list[str]]:
    """Field errors that keep the customer on ``step``."""
    if step is CheckoutStep.SHIPPING:
        return address_errors(form.shipping)
    if step is CheckoutStep.BILLING:
        if form.same_as_shipping:
            return {}
        return address_errors(form.billing, prefix="billing_")
    if step is CheckoutStep.PAYMENT:
        return payment_errors(form.payment)
    return {}


def validate(step: CheckoutStep, form: CheckoutForm) -> bool:
    return not step_errors(step, form)


def transition(step: CheckoutStep, event: WizardEvent, form: CheckoutForm) -> CheckoutStep:
    """Return the step after ``event``.

    Raises ``InvalidOperationError`` when ``event`` is not allowed from
    ``step`` and ``ValidationError`` when the step's fields block it.
    """
    target = _VALID_TRANSITIONS[step].get(event)
    if target is None:
        raise InvalidOperationError(f"Cannot apply {event.value} to the {step.name.lower()} step")

    if event in _GUARDED_EVENTS:
        errors = step_errors(step, form)
        if errors:
            raise ValidationError(errors)
    return target
