import json
import click
from flask.cli import with_appcontext
from sqlalchemy import select

from feedback_app.errors import FeedbackError
from feedback_app.extensions import db, sheets_mirror
from feedback_app.models import FORM_TYPES, FeedbackRecord, Order
from feedback_app.models.feedback import FORM_TYPE_CUSTOMER_SATISFACTION
from feedback_app.services import lifecycle, submission, tokens

def _get_order(order_id: str):
    return db.session.execute(select(Order).where(Order.order_id == order_id)).scalar_one_or_none()

@click.group()
def orders():
    """Local order fixtures (production orders come from order management)."""

@orders.command("add")
@click.option("--order-id", required=True)
@click.option("--email", required=True)
@click.option("--username", required=True)
@click.option("--mobile", default=None)
@click.option("--completed/--not-completed", default=False, help="Stamp service completion now")
@with_appcontext
def orders_add(order_id, email, username, mobile, completed):
    if _get_order(order_id):
        raise click.ClickException("Order already exists")
    order = Order(
        order_id=order_id,
        email=email,
        username=username,
        mobile=mobile,
        service_complete_datetime=tokens.utcnow() if completed else None,
    )
    db.session.add(order)
    db.session.commit()
    click.echo(f"Order created order_id={order_id} completed={completed}")

@orders.command("complete")
@click.option("--order-id", required=True)
@with_appcontext
def orders_complete(order_id):
    order = _get_order(order_id)
    if not order:
        raise click.ClickException("Order not found")
    order.service_complete_datetime = tokens.utcnow()
    db.session.commit()
    click.echo(f"Order {order_id} marked complete")

@click.group()
def feedback():
    """Feedback request ops."""

@feedback.command("trigger")
@click.option("--order-id", required=True)
@click.option("--form-type", type=click.Choice(FORM_TYPES), default=FORM_TYPE_CUSTOMER_SATISFACTION)
@with_appcontext
def feedback_trigger(order_id, form_type):
    try:
        result = submission.trigger_for_order(order_id, form_type)
    except FeedbackError as err:
        raise click.ClickException(f"{err.code}: {err.message}")
    click.echo(f"Feedback request sent to {result['customer_email']} link={result['feedback_link']}")

@feedback.command("status")
@click.option("--order-id", required=True)
@with_appcontext
def feedback_status(order_id):
    click.echo(json.dumps(lifecycle.status(order_id), default=str, indent=2))

@feedback.command("resync")
@click.option("--order-id", required=True)
@with_appcontext
def feedback_resync(order_id):
    record = db.session.execute(
        select(FeedbackRecord).where(FeedbackRecord.order_id == order_id)
    ).scalar_one_or_none()
    if not record or not record.is_submitted:
        raise click.ClickException("No submitted feedback for this order")
    fut = submission.schedule_mirror(order_id)
    if fut is None:
        raise click.ClickException("Google Sheets mirror is not configured")
    # Process is about to exit; wait for the worker
    sheets_mirror.flush(timeout=60)
    if fut.done() and fut.result():
        click.echo(f"Order {order_id} mirrored to sheet")
    else:
        raise click.ClickException("Mirror failed; see logs")

def register_cli(app):
    app.cli.add_command(orders)
    app.cli.add_command(feedback)
