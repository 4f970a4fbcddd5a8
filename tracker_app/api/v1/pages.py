from fastapi import APIRouter

router = APIRouter(tags=["pages"])


@router.get("/404")
def not_found_page():
    return {"status": "not_found", "message": "Este link não existe."}


@router.get("/link-inativo")
def inactive_link_page():
    return {"status": "inactive", "message": "Este link está temporariamente desativado."}


@router.get("/erro")
def error_page():
    return {"status": "error", "message": "Não foi possível processar este link. Tente novamente."}
