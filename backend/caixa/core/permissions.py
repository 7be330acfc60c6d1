"""
Permissões: papel × recurso e escopo de loja.
Vistoriador só enxerga e lança dados da própria loja; admin vê todas.
"""
from enum import Enum
from typing import List, Optional

from caixa.models.user import UserRole


class Resource(str, Enum):
    CASH_BOX = "CASH_BOX"                 # lançar e editar caixas
    RECEIVABLES = "RECEIVABLES"           # a receber, registrar pagamento
    WRITE_OFF = "WRITE_OFF"               # baixa de recebível
    ANALYTICS = "ANALYTICS"               # painel, métricas, gráficos, DRE
    EXPENSES = "EXPENSES"                 # despesas fixas/variáveis e modelos
    MONTHLY_CLOSURE = "MONTHLY_CLOSURE"
    USERS = "USERS"


RESOURCE_ROLES = {
    Resource.CASH_BOX: [UserRole.VISTORIADOR, UserRole.ADMIN],
    Resource.RECEIVABLES: [UserRole.VISTORIADOR, UserRole.ADMIN],
    Resource.WRITE_OFF: [UserRole.ADMIN],
    Resource.ANALYTICS: [UserRole.ADMIN],
    Resource.EXPENSES: [UserRole.ADMIN],
    Resource.MONTHLY_CLOSURE: [UserRole.ADMIN],
    Resource.USERS: [UserRole.ADMIN],
}


def _parse_role(role: str) -> Optional[UserRole]:
    try:
        return UserRole(role)
    except ValueError:
        return None


def can_access_resource(role: str, resource: Resource) -> bool:
    r = _parse_role(role)
    if r is None:
        return False
    return r in RESOURCE_ROLES.get(resource, [])


def is_admin(role: str) -> bool:
    return _parse_role(role) == UserRole.ADMIN


def scoped_store_id(role: str, user_store_id: Optional[int], requested: Optional[int] = None) -> Optional[int]:
    """Loja efetiva do filtro: admin escolhe (ou todas), vistoriador sempre a própria."""
    if is_admin(role):
        return requested
    return user_store_id


def lacks_store_scope(role: str, user_store_id: Optional[int]) -> bool:
    """Vistoriador sem loja não enxerga nada: None no filtro significaria todas as lojas."""
    return not is_admin(role) and user_store_id is None


def can_access_store(role: str, user_store_id: Optional[int], store_id: Optional[int]) -> bool:
    if is_admin(role):
        return True
    return user_store_id is not None and user_store_id == store_id


def get_menu_items(role: str) -> List[dict]:
    """Itens do menu conforme o papel. Cada item: id, label, href, group, action, divider."""
    if _parse_role(role) is None:
        return []

    items = []
    if can_access_resource(role, Resource.CASH_BOX):
        items.append({"id": "dashboard", "label": "Caixa do dia", "href": "/", "group": "Caixa"})
        items.append({"id": "history", "label": "Histórico", "href": "/historico", "group": "Caixa"})
    if can_access_resource(role, Resource.RECEIVABLES):
        items.append({"id": "receivables", "label": "A receber", "href": "/receber", "group": "Caixa"})

    if can_access_resource(role, Resource.ANALYTICS):
        items.append({"id": "admin", "label": "Painel", "href": "/admin", "group": "Administração"})
        items.append({"id": "metrics", "label": "Métricas", "href": "/admin/metricas", "group": "Administração"})
    if can_access_resource(role, Resource.EXPENSES):
        items.append({
            "id": "fixed_expenses",
            "label": "Despesas fixas",
            "href": "/admin/despesas-fixas",
            "group": "Administração",
        })
    if can_access_resource(role, Resource.MONTHLY_CLOSURE):
        items.append({
            "id": "monthly_closure",
            "label": "Fechamento mensal",
            "href": "/admin/fechamento",
            "group": "Administração",
        })
    if can_access_resource(role, Resource.USERS):
        items.append({"id": "users", "label": "Usuários", "href": "/admin/usuarios", "group": "Administração"})

    items.append({"id": "_div", "label": "", "href": "#", "divider": True})
    items.append({"id": "password", "label": "Alterar senha", "href": "#", "action": "change_password"})
    items.append({"id": "logout", "label": "Sair", "href": "/login", "action": "logout"})
    return items
