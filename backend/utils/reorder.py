from models import db


def apply_order(model, items, **scope):
    """Persist ``[{id, order}]`` pairs for ``model`` in a single commit.

    Every id must exist (and match ``scope`` filters when given), otherwise
    nothing is written and ``ValueError`` is raised.
    """
    if not isinstance(items, list):
        raise ValueError("Invalid items array")

    updates = {}
    for item in items:
        if not isinstance(item, dict) or "id" not in item or "order" not in item:
            raise ValueError("Each item needs an id and an order")
        try:
            updates[int(item["id"])] = int(item["order"])
        except (TypeError, ValueError):
            raise ValueError("id and order must be integers")

    if not updates:
        return 0

    records = model.query.filter(model.id.in_(updates.keys())).filter_by(**scope).all()
    if len(records) != len(updates):
        raise ValueError("Unknown id in reorder payload")

    try:
        for record in records:
            record.order = updates[record.id]
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return len(records)
