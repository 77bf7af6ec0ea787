# analysis/anomaly.py
# Anomaly detection delegated to the model; the report is displayed verbatim.

from __future__ import annotations
import textwrap
from typing import List, Optional

from config import ANOMALY_DESCRIPTION_DEFAULT, CURRENCY_LABEL
from .contracts import AnomalyResult, CostRecord
from .csv_codec import records_to_csv
from .prompting import GenerateFn, call_json_flow, tool_schema

ANOMALY_TOOL = tool_schema(
    "emit_anomaly_report",
    "Return the anomaly report strictly in the fixed JSON schema.",
    {
        "anomalyReport": "Un rapport des anomalies détectées, avec des explications.",
        "decisionSupportMessage": (
            "Un message pour aider les contrôleurs de coûts à prendre des décisions concernant les anomalies."
        ),
    },
)


def build_anomaly_prompt(cost_csv: str, description: str) -> tuple[str, str]:
    system = textwrap.dedent(f"""
    Vous êtes un assistant IA spécialisé dans la détection d'anomalies financières au Maroc. La devise utilisée est le Dirham Marocain ({CURRENCY_LABEL}).
    Votre tâche est d'analyser les données de coûts fournies et d'identifier toute fluctuation ou anomalie inhabituelle.
    Fournissez un rapport résumant les anomalies détectées, y compris les raisons potentielles et la gravité.

    Formatez le rapport d'anomalie pour qu'il soit facilement compréhensible par un contrôleur de coûts.
    Incluez la liste des anomalies, avec une description, les raisons potentielles et la gravité.
    Assurez-vous que le rapport d'anomalie inclut la description et les informations sur les données de coûts.
    Terminez le rapport par un résumé des conclusions et des recommandations.

    Sur la base du rapport d'anomalie, fournissez un message concis d'aide à la décision (decisionSupportMessage)
    pour aider les contrôleurs de coûts à prendre des décisions éclairées. Suggérez des actions ou des enquêtes potentielles.
    Répondez UNIQUEMENT avec l'objet JSON, sans markdown ni texte additionnel.
    """).strip()
    user = (
        f"Description des données : {description}\n"
        f"Données de coûts :\n{cost_csv}"
    )
    return system, user


def detect_anomalies(
    records: List[CostRecord],
    description: str = ANOMALY_DESCRIPTION_DEFAULT,
    *,
    generate_fn: Optional[GenerateFn] = None,
    model: Optional[str] = None,
    max_tokens: Optional[int] = None,
    **retry_kwargs,
) -> AnomalyResult:
    system, user = build_anomaly_prompt(records_to_csv(records), description)
    out = call_json_flow(
        system=system, user=user, tool=ANOMALY_TOOL,
        generate_fn=generate_fn, model=model, max_tokens=max_tokens, **retry_kwargs,
    )
    return AnomalyResult(report=out["anomalyReport"], decision_support=out["decisionSupportMessage"].strip())
