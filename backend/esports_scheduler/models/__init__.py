from esports_scheduler.models.user import User
from esports_scheduler.models.team import Team
from esports_scheduler.models.computer import Computer
from esports_scheduler.models.blackout import Blackout
from esports_scheduler.models.reservation import Reservation

__all__ = ["User", "Team", "Computer", "Blackout", "Reservation"]
