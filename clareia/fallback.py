# clareia/fallback.py
"""
Fixed example statements for demo/offline use. They are only served when a
caller asks for them explicitly (demo mode or the examples endpoint), never
as a substitute for a failed extraction.
"""
from enum import Enum
from typing import Any, Dict

from .schema import ProcessedStatement


class FallbackKind(str, Enum):
    BANK_STATEMENT = "extrato_bancario"
    UTILITY_BILL = "conta_de_luz"


_CATALOG: Dict[FallbackKind, Dict[str, Any]] = {
    FallbackKind.BANK_STATEMENT: {
        "statementDate": "Março 2023",
        "totalAmount": 120.40,
        "items": [
            {
                "id": "1",
                "date": "04/03",
                "description": "Débito automático: Seguro pessoal",
                "amount": 29.90,
                "category": "seguro",
                "explanation": "Cobrança recorrente do seguro opcional contratado no banco. Você pode cancelar.",
            },
            {
                "id": "2",
                "date": "05/03",
                "description": "Tarifa bancária mensal",
                "amount": 12.00,
                "category": "tarifa",
                "explanation": "Taxa de manutenção da sua conta corrente. Confirme com seu banco se você tem direito a isenção desta tarifa.",
            },
            {
                "id": "3",
                "date": "06/03",
                "description": "Compra no Market ABC",
                "amount": 78.50,
                "category": "compra",
                "explanation": "Transação de débito feita no supermercado localizado em São Paulo.",
            },
        ],
    },
    FallbackKind.UTILITY_BILL: {
        "statementDate": "Abril 2023",
        "totalAmount": 187.35,
        "items": [
            {
                "id": "1",
                "date": "01/04",
                "description": "Consumo de energia (210 kWh)",
                "amount": 152.40,
                "category": "consumo",
                "explanation": "Valor da energia que você usou no mês, medido pelo relógio de luz.",
            },
            {
                "id": "2",
                "date": "01/04",
                "description": "Adicional bandeira amarela",
                "amount": 9.45,
                "category": "tarifa",
                "explanation": "Acréscimo cobrado quando a geração de energia fica mais cara. Reduzir o consumo no horário de pico diminui esse valor.",
            },
            {
                "id": "3",
                "date": "01/04",
                "description": "Contribuição de iluminação pública",
                "amount": 25.50,
                "category": "imposto",
                "explanation": "Taxa municipal que paga a iluminação das ruas. É obrigatória e vem junto na conta de luz.",
            },
        ],
    },
}


def fallback(kind: FallbackKind) -> ProcessedStatement:
    """Fresh copy of the example dataset for ``kind``; KeyError for unknown kinds."""
    try:
        kind = FallbackKind(kind)
    except ValueError:
        raise KeyError(kind) from None
    return ProcessedStatement.model_validate(_CATALOG[kind])
