"""Schema do dossiê de oferta para investidores."""
from keepdocs.scheme.example import QUESTIONNAIRE_CONTENT_TYPES

EDITABLE_STATUSES = ["CREATION", "CREATED", "CONTINUE_QUESTIONNAIRE"]

def _document(type_: str, name: str, required: bool = True, accept: list[str] | None = None) -> dict:
    document = {
        "type": type_,
        "name": name,
        "access": {"show": "*", "editable": EDITABLE_STATUSES},
    }
    if required:
        document["required"] = ["CREATION"]
    if accept:
        document["accept"] = accept
    return document

SCHEMA = {
    "documents": [
        _document("passport", "Passaporte"),
        _document("inn", "Número de contribuinte (INN)"),
        _document("fns_screenshot", "Captura dos dados da receita federal"),
        _document("snils", "Número de seguro social (SNILS)"),
        _document("buyerQuestionnaire", "Questionários", required=False, accept=QUESTIONNAIRE_CONTENT_TYPES),
        _document("qual_statement", "Pedido de reconhecimento como investidor qualificado"),
        _document("qual_exclude_statement", "Pedido de exclusão do registro de investidores qualificados"),
        _document("other", "Outros", required=False),
    ],
}
