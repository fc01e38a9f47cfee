"""Running-number counters behind form and report numbers."""

from sqlalchemy import Column, Integer, String

from lims_reports.models.base import BaseModel


class NumberSequence(BaseModel):
    """
    Last number handed out for one numbering scope.

    Attributes:
        scope: Counter key, ``client:<CODE>`` for form numbers or
            ``department:<CODE>`` for lab report numbers
        last_number: Highest number issued so far
    """

    __tablename__ = "number_sequences"

    scope = Column(String(60), unique=True, nullable=False)
    last_number = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<NumberSequence(scope='{self.scope}', last={self.last_number})>"
