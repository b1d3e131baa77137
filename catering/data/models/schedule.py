from sqlalchemy import Column, Integer, Boolean, Date, Time, Text

from catering.data.database import Base


class ScheduleModel(Base):
    __tablename__ = "order_schedules"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, unique=True, index=True)

    is_blocked = Column(Boolean, nullable=False, default=False)
    max_orders = Column(Integer, nullable=True)  # None = bez limitu
    # licznik doradczy, moze sie przekrecic przy wyscigu (patrz tasks/quota.py)
    current_orders = Column(Integer, nullable=False, default=0)

    cutoff_date = Column(Date, nullable=True)
    cutoff_time = Column(Time, nullable=True)
    notes = Column(Text, nullable=True)
