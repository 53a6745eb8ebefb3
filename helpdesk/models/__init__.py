# Import every model so relationships resolve and Base.metadata is complete.
from helpdesk.models.lookup import Region, Category, Department, TicketType  # noqa: F401
from helpdesk.models.user import Role, User, user_roles  # noqa: F401
from helpdesk.models.asset import Asset  # noqa: F401
from helpdesk.models.ticket import Ticket  # noqa: F401
from helpdesk.models.comment import Comment  # noqa: F401
from helpdesk.models.work_order import WorkOrder, WorkOrderExpense  # noqa: F401
from helpdesk.models.app_setting import AppSetting  # noqa: F401
from helpdesk.models.audit_log import AuditLog  # noqa: F401
from helpdesk.models.conversation import Conversation, Message  # noqa: F401
from helpdesk.models.content import Organization, Faq, KnowledgeBaseArticle  # noqa: F401
