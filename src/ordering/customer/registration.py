"""Customer registration: command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.customer.customer import Customer
from ordering.domain import ordering


@ordering.command(part_of="Customer")
class RegisterCustomer:
    tenant_id = Identifier(required=True)
    name = String(required=True, max_length=150)
    phone = String(max_length=30)
    points = Integer(default=0, min_value=0)


@ordering.command_handler(part_of=Customer)
class RegisterCustomerHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        customer = Customer.register(
            tenant_id=command.tenant_id,
            name=command.name,
            phone=command.phone,
            points=command.points,
        )
        current_domain.repository_for(Customer).add(customer)
        return str(customer.id)
