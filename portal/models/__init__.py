# Importing every model registers the tables on Base.metadata
from portal.models.profile import Profile
from portal.models.subject import Subject, Enrollment
from portal.models.due import Due, DueStatus
from portal.models.payment import Payment, PaymentMethod
from portal.models.assignment import Assignment, AssignmentSubmission
from portal.models.material import StudyMaterial
