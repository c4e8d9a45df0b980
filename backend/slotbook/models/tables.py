from sqlalchemy import Column, Index, Integer, Text, text
from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class Clients(Base):
    __tablename__ = 'clients'

    id = Column(Text, primary_key=True)
    email = Column(Text, nullable=False, unique=True)
    display_name = Column(Text, nullable=False, server_default=text("''"))
    max_bookings_per_month = Column(Integer, nullable=False, server_default=text('2'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class UserProfiles(Base):
    __tablename__ = 'user_profiles'

    uid = Column(Text, primary_key=True)
    email = Column(Text)
    display_name = Column(Text, nullable=False, server_default=text("''"))
    max_bookings_per_month = Column(Integer, nullable=False, server_default=text('2'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_user_date', 'user_id', 'date'),
        Index('ix_bookings_date', 'date'),
    )

    id = Column(Text, primary_key=True)
    user_id = Column(Text, nullable=False)
    user_email = Column(Text)
    date = Column(Text, nullable=False)  # yyyy-MM-dd
    slot_id = Column(Text, nullable=False)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class CalendarConfig(Base):
    __tablename__ = 'calendar_config'

    id = Column(Text, primary_key=True)
    disabled_dates = Column(Text, nullable=False, server_default=text("'[]'"))
    disabled_slots = Column(Text, nullable=False, server_default=text("'[]'"))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
