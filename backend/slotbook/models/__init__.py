from .tables import Base, Bookings, CalendarConfig, Clients, UserProfiles

__all__ = ["Base", "Bookings", "CalendarConfig", "Clients", "UserProfiles"]
