"""
Payment Event Service — Maintains the hash-chained trail for each payment request.
"""
from datetime import datetime
from typing import Optional, Dict

from sqlalchemy.orm import Session

from members_api.models.payment_event import PaymentEvent
from members_api.utils.hashing import chain_hash


class PaymentEventService:
    """Appends tamper-evident events. Never commits; the caller owns the transaction."""

    @staticmethod
    def record(
        db: Session,
        payment_request_id: int,
        action: str,
        payload: Optional[Dict] = None,
        metadata: Optional[Dict] = None,
    ) -> PaymentEvent:
        """Add an event chained to the previous event of the same request.

        Args:
            db: Database session (transaction left open).
            payment_request_id: Request this event belongs to.
            action: Event identifier (e.g. PAYMENT_REQUESTED, PAYMENT_CONFIRMED).
            payload: Data to hash into the chain.
            metadata: Extra data stored alongside.

        Returns:
            The pending PaymentEvent.
        """
        last_event = (
            db.query(PaymentEvent)
            .filter(PaymentEvent.payment_request_id == payment_request_id)
            .order_by(PaymentEvent.id.desc())
            .first()
        )
        previous_hash = last_event.payload_hash if last_event else ""

        event = PaymentEvent(
            payment_request_id=payment_request_id,
            action=action,
            payload_hash=chain_hash(payload or {}, previous_hash),
            previous_hash=previous_hash,
            event_metadata=metadata or {},
            timestamp=datetime.utcnow(),
        )
        db.add(event)
        db.flush()
        return event

    @staticmethod
    def get_trail(db: Session, payment_request_id: int) -> list[PaymentEvent]:
        """All events for a request, oldest first."""
        return (
            db.query(PaymentEvent)
            .filter(PaymentEvent.payment_request_id == payment_request_id)
            .order_by(PaymentEvent.id.asc())
            .all()
        )

    @staticmethod
    def verify_chain(db: Session, payment_request_id: int) -> dict:
        """Check that every event links to its predecessor.

        Returns:
            dict with 'valid' (bool), 'total_events', and 'broken_at' (if invalid).
        """
        events = PaymentEventService.get_trail(db, payment_request_id)

        for i, event in enumerate(events):
            expected_prev = events[i - 1].payload_hash if i > 0 else ""
            if event.previous_hash != expected_prev:
                return {
                    "valid": False,
                    "total_events": len(events),
                    "broken_at": event.id,
                    "message": f"Chain broken at event {event.id} ({event.action})",
                }

        return {"valid": True, "total_events": len(events), "broken_at": None}
