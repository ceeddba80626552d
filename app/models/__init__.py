from app.models.tenant import Tenant
from app.models.admin_user import AdminUser
from app.models.admin_login_attempt import AdminLoginAttempt
from app.models.category import Category
from app.models.product import Product
from app.models.company_info import CompanyInfo
from app.models.visitor_counter import VisitorCounter
from app.models.theme_settings import ThemeSettings
