"""Conjunto de dados reutilizável para cenários de teste backend."""

HAPPY_PATH_ADMIN = {
    "id": 7,
    "tenant_id": 1,
    "email": "admin@example.com",
    "name": "Admin",
    "role": "admin",
    "active": True,
    "password_hash": "hashed",
}

TENANT_ACCESS_DENIED = {
    "request_tenant_id": 2,
    "admin_tenant_id": 1,
    "expected_status_code": 403,
    "expected_detail": "Tenant não autorizado",
}

THEME_CREATE_PAYLOAD = {
    "name": "Verão",
    "colors": {"primary": "#112233", "buttons": {"primary": "#445566"}},
    "typography": {"main_font": "Inter, sans-serif"},
    "product_card": {"border_radius": "12px"},
}

COMPANY_PAYLOAD = {
    "company_name": "  Burger House  ",
    "company_address": "Rua Principal, 100",
    "phone_number": "11999990000",
    "email": "contato@example.com",
    "website": "burger.test",
    "working_hours": "Seg-Sex 11h-23h",
}
