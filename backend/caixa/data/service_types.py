# Catálogo inicial de serviços: código, nome, preço padrão (centavos), entra no bruto.
# Revistoria de retorno só conta na quantidade; Pesquisa tem preço definido no caixa.

SERVICE_TYPES = [
    {"code": "CARRO", "name": "Carro", "default_price_cents": 12000, "counts_in_gross": True},
    {"code": "MOTO", "name": "Moto", "default_price_cents": 10000, "counts_in_gross": True},
    {"code": "CAMINHONETE", "name": "Caminhonete", "default_price_cents": 14000, "counts_in_gross": True},
    {"code": "CAMINHAO", "name": "Caminhão", "default_price_cents": 18000, "counts_in_gross": True},
    {"code": "PESQUISA", "name": "Pesquisa", "default_price_cents": 0, "counts_in_gross": True},
    {"code": "CAUTELAR_CARRO", "name": "Cautelar Carro", "default_price_cents": 22000, "counts_in_gross": True},
    {"code": "CAUTELAR_MOTO", "name": "Cautelar Moto", "default_price_cents": 16000, "counts_in_gross": True},
    {
        "code": "CAUTELAR_CAMINHAO_CAMINHONETE",
        "name": "Cautelar Caminhão/Caminhonete",
        "default_price_cents": 24000,
        "counts_in_gross": True,
    },
    {"code": "REVISTORIA_MULTA", "name": "Revistoria Multa", "default_price_cents": 20000, "counts_in_gross": True},
    {"code": "REV_RETORNO", "name": "Revistoria Retorno", "default_price_cents": 0, "counts_in_gross": False},
]
