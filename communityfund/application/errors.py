"""
Errors shared by the use cases
"""


class EntityNotFoundError(LookupError):
    """Referenced row does not exist (API answers 404)"""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} #{entity_id} not found")


def get_or_raise(db, model, entity_id: int, entity: str | None = None):
    row = db.get(model, entity_id)
    if row is None:
        raise EntityNotFoundError(entity or model.__tablename__, entity_id)
    return row
