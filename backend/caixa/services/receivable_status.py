from caixa.models import ReceivableStatus

ALLOWED_TRANSITIONS: dict[ReceivableStatus, list[ReceivableStatus]] = {
    ReceivableStatus.ABERTO: [ReceivableStatus.PAGO_PENDENTE_BAIXA],
    # pagamento só enquanto aberto; baixa só pelo admin
    ReceivableStatus.PAGO_PENDENTE_BAIXA: [ReceivableStatus.BAIXADO],
    ReceivableStatus.BAIXADO: [],
}


def can_transition(current: ReceivableStatus, new: ReceivableStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])
