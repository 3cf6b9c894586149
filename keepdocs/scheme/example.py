"""Schema de exemplo, usado em desenvolvimento e nos testes."""

QUESTIONNAIRE_CONTENT_TYPES = [
    "image/*",
    "application/pdf",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.oasis.opendocument.text",
    "application/zip",
    "application/x-tika-ooxml",
    "application/x-tika-msoffice",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.oasis.opendocument.spreadsheet",
]

SCHEMA = {
    "documents": [
        {
            "type": "passport",
            "name": "Passaporte",
            "required": {"statusCode": ["CREATION"]},
            "accept": ["image/*", "application/pdf"],
            "access": {
                "show": "*",
                "editable": {"statusCode": ["CREATION", "CREATED", "CONTINUE_QUESTIONNAIRE"]},
            },
        },
        {
            "type": "buyerQuestionnaire",
            "name": "Questionário",
            "accept": QUESTIONNAIRE_CONTENT_TYPES,
        },
        {
            "type": "otherDocuments",
            "name": "Outros",
        },
    ],
}
