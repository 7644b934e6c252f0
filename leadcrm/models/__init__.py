# Models package - database models
from leadcrm.models.user import User
from leadcrm.models.lead import Lead
