from putik.db.session import get_engine
from putik.db.base import Base
#-------------------all tables must be imported before create_all-----------------------
from putik.models.user import User
from putik.models.vehicle import Vehicle
from putik.models.part_type import PartType
from putik.models.part import Part
from putik.models.mechanic import Mechanic
from putik.models.mechanic_unavailable_day import MechanicUnavailableDay
from putik.models.booking_group import BookingGroup
from putik.models.booking import Booking


def init_db():
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
