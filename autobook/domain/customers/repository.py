"""Customer repository - contact identity lookup and upsert"""

from typing import Optional

from sqlalchemy.orm import Session

from ...database import upsert_statement
from ...models import Customer


class CustomerRepository:
    """Repository for customer database operations"""

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.email == email).first()

    @staticmethod
    def upsert_by_email(
        db: Session,
        email: str,
        phone: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
    ) -> Customer:
        """
        Create the customer or overwrite phone/name with the latest values.

        Does not commit; the caller's unit of work owns the transaction.
        """
        stmt = upsert_statement(db, Customer)
        if stmt is not None:
            values = {"phone": phone, "first_name": first_name, "last_name": last_name}
            stmt = stmt.values(email=email, **values).on_conflict_do_update(
                index_elements=[Customer.email], set_=values
            )
            db.execute(stmt)
            customer = CustomerRepository.get_by_email(db, email)
            db.refresh(customer)
            return customer

        customer = CustomerRepository.get_by_email(db, email)
        if customer is None:
            customer = Customer(email=email)
            db.add(customer)
        customer.phone = phone
        customer.first_name = first_name
        customer.last_name = last_name
        db.flush()
        return customer
