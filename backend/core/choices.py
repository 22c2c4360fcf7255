"""Fixed option lists shared by the request forms and the admin console."""

STATUS_PENDING = 'Pending'
STATUS_APPROVED = 'Approved'
STATUS_REJECTED = 'Rejected'
STATUS_IN_PROGRESS = 'In Progress'

STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, STATUS_IN_PROGRESS)
ADMIN_DECISIONS = (STATUS_APPROVED, STATUS_REJECTED)

# Values accepted by the ?status= list filter.
STATUS_FILTERS = ('all', 'pending', 'approved', 'rejected')

URGENCY_LEVELS = ('Low', 'Medium', 'High', 'Emergency')

RELATIONSHIPS = ('Self', 'Family Member', 'Friend', 'Colleague', 'Other')

DEPARTMENTS = (
    'General Consultation',
    'Medical',
    'Legal',
    'Educational',
    'Social Services',
    'Technical Support',
    'Other',
)

HELP_TYPES = (
    'Food Assistance',
    'Medical Help',
    'Educational Support',
    'Financial Aid',
    'Legal Assistance',
    'Housing Support',
    'Job Assistance',
    'Emergency Help',
    'Other',
)

CONTACT_PREFERENCES = ('Phone Call', 'WhatsApp', 'Email', 'SMS')

ROLE_USER = 'user'
ROLE_ADMIN = 'admin'
