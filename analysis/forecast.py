# analysis/forecast.py
# Cost forecast delegated to the model: history CSV in, forecast CSV + narrative out.

from __future__ import annotations
import logging
import textwrap
from typing import List, Optional

from config import CURRENCY_LABEL, FORECAST_HORIZON_DEFAULT
from .contracts import CostRecord, ForecastResult
from .csv_codec import parse_forecast_csv, records_to_csv
from .prompting import GenerateFn, call_json_flow, tool_schema

logger = logging.getLogger(__name__)

FORECAST_TOOL = tool_schema(
    "emit_cost_forecast",
    "Return the cost forecast strictly in the fixed JSON schema.",
    {
        "forecastedCosts": (
            'Coûts prévus au format CSV avec les colonnes "Date" et "Forecasted Cost". '
            "Toutes les valeurs entourées de guillemets doubles, guillemets internes doublés."
        ),
        "analysisSummary": (
            "Résumé de l'analyse des prévisions : tendances clés, dépassements de budget potentiels, recommandations."
        ),
        "overrunWarning": "Message d'avertissement si un dépassement de budget est détecté, sinon chaîne vide.",
    },
)

_EXAMPLE = (
    '{"forecastedCosts": "\\"Date\\",\\"Forecasted Cost\\"\\n\\"2024-07-01\\",\\"120000\\"\\n'
    '\\"2024-08-01\\",\\"125000\\"", '
    '"analysisSummary": "Tendance à la hausse portée par les matières premières et la main-d\'œuvre...", '
    '"overrunWarning": "Dépassement de budget détecté pour le mois d\'août..."}'
)


def build_forecast_prompt(cost_csv: str, horizon: str) -> tuple[str, str]:
    system = textwrap.dedent(f"""
    Vous êtes un analyste financier expert en prévision de coûts au Maroc. La devise utilisée est le Dirham Marocain ({CURRENCY_LABEL}).
    Analysez les données de coûts historiques fournies pour prévoir les coûts futurs et identifier les dépassements budgétaires potentiels.
    Fournissez les coûts prévus au format CSV et un résumé de votre analyse, y compris les tendances clés et les recommandations.

    Instructions de format de sortie :
    - La sortie forecastedCosts DOIT être une chaîne CSV valide.
    - Le CSV DOIT avoir deux colonnes : "Date" et "Forecasted Cost", une ligne par mois, dates au format AAAA-MM-JJ.
    - Chaque valeur dans le CSV, y compris les en-têtes, DOIT être entourée de guillemets doubles.
    - Tout guillemet double à l'intérieur d'une valeur DOIT être échappé par un autre guillemet double.
    - Incluez un résumé d'analyse (analysisSummary) mettant en évidence les tendances clés, les dépassements budgétaires potentiels et des recommandations concrètes.
    - Fournissez un message overrunWarning si un dépassement de budget est détecté ; sinon une chaîne vide.
    Répondez UNIQUEMENT avec l'objet JSON, sans markdown ni texte additionnel.

    Exemple de sortie :
    {_EXAMPLE}
    """).strip()
    user = (
        f"Données de coûts d'entrée (CSV) :\n{cost_csv}\n\n"
        f"Horizon de prévision : {horizon}"
    )
    return system, user


def forecast_costs(
    records: List[CostRecord],
    horizon: str = FORECAST_HORIZON_DEFAULT,
    *,
    generate_fn: Optional[GenerateFn] = None,
    model: Optional[str] = None,
    max_tokens: Optional[int] = None,
    **retry_kwargs,
) -> ForecastResult:
    system, user = build_forecast_prompt(records_to_csv(records), horizon)
    out = call_json_flow(
        system=system, user=user, tool=FORECAST_TOOL,
        generate_fn=generate_fn, model=model, max_tokens=max_tokens, **retry_kwargs,
    )
    points = parse_forecast_csv(out["forecastedCosts"])
    if not points:
        logger.warning("forecast_costs: model CSV had no usable rows")
    return ForecastResult(
        forecast=points,
        summary=out["analysisSummary"].strip(),
        warning=out["overrunWarning"].strip(),
    )
