from sqlalchemy import func
from feedback_app.extensions import db

class Order(db.Model):
    """Completed service engagement. Owned by order management; read-only here."""
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(50), nullable=False, unique=True, index=True)
    username = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(320), nullable=True)
    mobile = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)

    service_start_datetime = db.Column(db.DateTime(timezone=True), nullable=True)
    service_complete_datetime = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        return dict(
            order_id=self.order_id,
            username=self.username,
            email=self.email,
            mobile=self.mobile,
            address=self.address,
            service_start_datetime=self.service_start_datetime.isoformat() if self.service_start_datetime else None,
            service_complete_datetime=self.service_complete_datetime.isoformat() if self.service_complete_datetime else None,
        )

    def __repr__(self) -> str:
        return f"<Order order_id={self.order_id!r} completed={self.service_complete_datetime is not None}>"
