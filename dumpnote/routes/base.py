from fastapi import APIRouter

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/ping")
def ping():
    return {}

@router.get("/version")
def version():
    return {"app": "dumpnote", "version": "0.1.0"}
