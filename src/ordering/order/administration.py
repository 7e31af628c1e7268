"""Post-payment administration — shipment tracking and internal notes."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordShipment:
    order_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=255)
    carrier = String(max_length=100)


@ordering.command(part_of="Order")
class UpdateAdminNotes:
    order_id = Identifier(required=True)
    admin_notes = Text()


@ordering.command_handler(part_of=Order)
class OrderAdministrationHandler:
    @handle(RecordShipment)
    def record_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_shipment(tracking_number=command.tracking_number, carrier=command.carrier)
        repo.add(order)

    @handle(UpdateAdminNotes)
    def update_admin_notes(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_admin_notes(command.admin_notes)
        repo.add(order)
