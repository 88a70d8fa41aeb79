from typing import Protocol


class PayableClient(Protocol):
    client_id: str
    email: str
    name: str


class PayableOrder(Protocol):
    order_id: str
    client: PayableClient
    description: str
