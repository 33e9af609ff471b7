from __future__ import annotations

from fastapi import HTTPException


class DuplicateKeyError(HTTPException):
    def __init__(self, key: str):
        super().__init__(status_code=409, detail=f'Já existe um campo com a chave "{key}"')
        self.key = key


class InUseError(HTTPException):
    def __init__(self, field_key: str, category_names: list[str]):
        names = ", ".join(category_names)
        super().__init__(
            status_code=409,
            detail=f'O campo "{field_key}" está em uso pelas categorias: {names}. Remova-o delas antes de excluir.',
        )
        self.category_names = category_names


class AlreadyAddedError(HTTPException):
    def __init__(self, field_id: str):
        super().__init__(status_code=409, detail="Este campo já foi adicionado a esta categoria.")
        self.field_id = field_id


class FieldNotFoundError(HTTPException):
    def __init__(self, detail: str = "Campo não encontrado"):
        super().__init__(status_code=404, detail=detail)


class CategoryNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(status_code=404, detail="Categoria não encontrada")


class FieldValidationError(HTTPException):
    """Carries every field-level failure at once, keyed by field key."""

    def __init__(self, errors: dict[str, str], message: str = "Verifique os campos destacados"):
        super().__init__(status_code=400, detail={"message": message, "errors": dict(errors)})
        self.errors = dict(errors)
