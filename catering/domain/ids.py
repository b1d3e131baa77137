# catering/domain/ids.py
import secrets
import string
import time

_ALPHABET = string.ascii_lowercase + string.digits


def _suffix(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def _millis() -> int:
    return int(time.time() * 1000)


def new_order_number() -> str:
    return f"ORDER-{_millis()}-{_suffix(9)}"


def new_gateway_order_id() -> str:
    return f"PAY-{_millis()}-{_suffix(9)}"[:50]


def new_batch_gateway_order_id() -> str:
    return f"BATCH_{_millis()}_{_suffix(6)}"[:50]


def new_batch_id() -> str:
    return f"BATCH_{_millis()}_{_suffix(9)}"


def new_cash_batch_id() -> str:
    return f"CASH_BATCH_{_millis()}_{_suffix(9)}"


def new_cash_transaction_id(order_id: int) -> str:
    return f"CASH-{_millis()}-{_suffix(9)}-{order_id}"
