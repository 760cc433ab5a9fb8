"""Order fulfilment: commands and handler.

Fulfilment reports progress on a placed order: picking started, handed to a
carrier, delivered.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class MarkProcessing:
    """Signal that the warehouse has started picking and packing."""

    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class RecordShipment:
    """Record that the order was handed to a carrier."""

    order_id = Identifier(required=True)
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)


@ordering.command(part_of="Order")
class RecordDelivery:
    """Record that the carrier has confirmed delivery to the customer."""

    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class RecordFulfillmentHandler:
    @handle(MarkProcessing)
    def mark_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_processing()
        repo.add(order)

    @handle(RecordShipment)
    def record_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ship(carrier=command.carrier, tracking_number=command.tracking_number)
        repo.add(order)

    @handle(RecordDelivery)
    def record_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.deliver()
        repo.add(order)
