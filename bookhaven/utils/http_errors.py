from fastapi import HTTPException, status

from bookhaven.exceptions import (
    AuthenticationRequired,
    BookHavenError,
    CheckoutStepError,
    InvalidPricingInput,
    OrderNotFound,
    OrderPersistenceFailed,
    OrderPersistenceFailedPostPayment,
    PaymentCaptureFailed,
    Unauthorized,
    ValidationError,
)

# order matters: subclasses before their bases
STATUS_CODES = [
    (AuthenticationRequired, status.HTTP_401_UNAUTHORIZED),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (OrderNotFound, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidPricingInput, status.HTTP_400_BAD_REQUEST),
    (CheckoutStepError, status.HTTP_409_CONFLICT),
    (PaymentCaptureFailed, status.HTTP_402_PAYMENT_REQUIRED),
    (OrderPersistenceFailedPostPayment, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (OrderPersistenceFailed, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def http_error(e: BookHavenError) -> HTTPException:
    for exc_type, code in STATUS_CODES:
        if isinstance(e, exc_type):
            break
    else:
        code = status.HTTP_400_BAD_REQUEST

    detail = {"message": e.message}
    if isinstance(e, ValidationError) and e.fields:
        detail["fields"] = e.fields
    if isinstance(e, OrderPersistenceFailedPostPayment):
        detail["payment_reference"] = e.payment_reference
        detail["action"] = "contact_support"

    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=code, detail=detail, headers=headers)
