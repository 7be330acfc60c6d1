"""Erros de domínio. As rotas convertem em HTTPException."""


class CaixaError(Exception):
    """Base para erros de regra de negócio."""


class NotFoundError(CaixaError):
    pass


class ConflictError(CaixaError):
    pass


class InvalidTransitionError(CaixaError):
    def __init__(self, current: str, new: str):
        super().__init__(f"Transição de status inválida: {current} -> {new}")
        self.current = current
        self.new = new
