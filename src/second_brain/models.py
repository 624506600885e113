"""
Import every ORM model so ``Base.metadata`` knows all tables.
"""

from second_brain.auth.models import AuthRecord
from second_brain.calls.models import Call
from second_brain.messages.models import Message
from second_brain.reminders.models import Reminder
from second_brain.users.models import User

__all__ = ["AuthRecord", "Call", "Message", "Reminder", "User"]
