from sqlalchemy import func
from feedback_app.extensions import db

FORM_TYPE_TICKET_CLOSURE = "ticket_closure"
FORM_TYPE_CUSTOMER_SATISFACTION = "customer_satisfaction"
FORM_TYPE_CUSTOMER_FEEDBACK = "cutomer_feedback"  # legacy tag spelling; stored rows use it
FORM_TYPE_CHURN = "churn_feedback"
FORM_TYPE_RELOCATION = "relocation_feedback"

FORM_TYPES = (
    FORM_TYPE_TICKET_CLOSURE,
    FORM_TYPE_CUSTOMER_SATISFACTION,
    FORM_TYPE_CUSTOMER_FEEDBACK,
    FORM_TYPE_CHURN,
    FORM_TYPE_RELOCATION,
)

EXPERIENCE_TIERS = ("very-poor", "poor", "average", "good", "excellent")

RATING_FIELDS = (
    "buddy_on_time",
    "buddy_courteous",
    "buddy_handling",
    "buddy_pickup",
    "sales_understanding",
    "sales_clarity",
    "sales_professionalism",
    "sales_transparency",
    "sales_followup",
    "sales_decision",
    "cx_onboarding",
    "cx_courteous",
    "cx_resolution",
    "cx_communication",
)

TEXT_FIELDS = ("tip_details", "liked", "improvement")

# Columns written by a submission, in sheet order
ANSWER_FIELDS = ("name", "experience", *RATING_FIELDS, "recommendation", "tip_asked", *TEXT_FIELDS)


class FeedbackRecord(db.Model):
    __tablename__ = "user_feedback"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(50), db.ForeignKey("orders.order_id", ondelete="RESTRICT"), nullable=False, unique=True, index=True)
    email = db.Column(db.String(320), nullable=True)

    # Token state; non-null only while a request is outstanding
    feedback_token = db.Column(db.String(64), nullable=True, unique=True, index=True)
    token_expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    feedback_link = db.Column(db.String(512), nullable=True)
    feedback_sent_at = db.Column(db.DateTime(timezone=True), nullable=True)
    feedback_submitted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)
    # Token spent by the submission; lets a replayed link report "already submitted"
    consumed_token = db.Column(db.String(64), nullable=True, index=True)
    form_type = db.Column(db.String(32), nullable=True, index=True)

    # Answers
    name = db.Column(db.String(255), nullable=True)
    experience = db.Column(db.String(16), nullable=True, index=True)
    buddy_on_time = db.Column(db.SmallInteger, nullable=True)
    buddy_courteous = db.Column(db.SmallInteger, nullable=True)
    buddy_handling = db.Column(db.SmallInteger, nullable=True)
    buddy_pickup = db.Column(db.SmallInteger, nullable=True)
    sales_understanding = db.Column(db.SmallInteger, nullable=True)
    sales_clarity = db.Column(db.SmallInteger, nullable=True)
    sales_professionalism = db.Column(db.SmallInteger, nullable=True)
    sales_transparency = db.Column(db.SmallInteger, nullable=True)
    sales_followup = db.Column(db.SmallInteger, nullable=True)
    sales_decision = db.Column(db.SmallInteger, nullable=True)
    cx_onboarding = db.Column(db.SmallInteger, nullable=True)
    cx_courteous = db.Column(db.SmallInteger, nullable=True)
    cx_resolution = db.Column(db.SmallInteger, nullable=True)
    cx_communication = db.Column(db.SmallInteger, nullable=True)
    recommendation = db.Column(db.SmallInteger, nullable=True)
    tip_asked = db.Column(db.String(3), nullable=True)
    tip_details = db.Column(db.Text, nullable=True)
    liked = db.Column(db.Text, nullable=True)
    improvement = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        db.Index("ix_user_feedback_form_submitted", "form_type", "feedback_submitted_at"),
    )

    @property
    def is_submitted(self) -> bool:
        return self.feedback_submitted_at is not None

    def to_dict(self):
        def _iso(v):
            return v.isoformat() if v else None

        data = {
            "id": self.id,
            "order_id": self.order_id,
            "email": self.email,
            "form_type": self.form_type,
            "feedback_link": self.feedback_link,
            "feedback_sent_at": _iso(self.feedback_sent_at),
            "feedback_submitted_at": _iso(self.feedback_submitted_at),
            "token_expires_at": _iso(self.token_expires_at),
            "created_at": _iso(self.created_at),
        }
        for field in ANSWER_FIELDS:
            data[field] = getattr(self, field)
        return data

    def __repr__(self) -> str:
        return f"<FeedbackRecord order_id={self.order_id!r} submitted={self.is_submitted}>"
