import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.config import settings
from app.db import get_db
from app.exceptions import ImportParseError, ProductServiceException, UploadRejected
from app.schemas.product_schema import ProductCreate, ProductOut, ProductUpdate, StockChangeOut
from app.services.export_service import products_to_csv
from app.services.import_service import ImportService
from app.services.product_service import ProductService
from app.services.upload_service import CSV_POLICY, IMAGE_POLICY, public_url, save_upload

log = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


def _http_error(e: ProductServiceException) -> HTTPException:
    if isinstance(e, UploadRejected):
        return HTTPException(status_code=e.status_code, detail=e.to_dict())
    if isinstance(e, ImportParseError):
        return HTTPException(
            status_code=e.status_code, detail={"error": e.message, "details": e.details}
        )
    return HTTPException(status_code=e.status_code, detail=e.message)


def _out(products):
    return [ProductOut.model_validate(p).model_dump() for p in products]


@router.get("", summary="List products")
def list_products(
    category: Optional[str] = Query(None, description="exact category"),
    search: Optional[str] = Query(None, description="substring of the name"),
    db: Session = Depends(get_db),
):
    return _out(ProductService(db).list_products(category=category, search=search))


@router.get("/search", summary="Search products by name")
def search_products(name: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return _out(ProductService(db).search(name))


@router.get("/export", summary="Download all products as CSV")
def export_products(db: Session = Depends(get_db)):
    body = products_to_csv(ProductService(db).list_products())
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{settings.EXPORT_FILENAME}"'},
    )


@router.post("/upload", summary="Upload a product image")
def upload_image(request: Request, image: Optional[UploadFile] = File(None)):
    if image is None:
        raise HTTPException(status_code=400, detail="No file uploaded (image)")
    try:
        stored = save_upload(image.file, image.filename, image.content_type, IMAGE_POLICY)
    except UploadRejected as e:
        raise _http_error(e)
    host = request.headers.get("host") or request.url.netloc
    return {"imageUrl": public_url(request.url.scheme, host, stored.name)}


@router.post("/import", summary="Import products from CSV")
def import_products(
    csv_file: Optional[UploadFile] = File(None, alias="csvFile"),
    db: Session = Depends(get_db),
):
    if csv_file is None:
        raise HTTPException(status_code=400, detail="CSV file (csvFile) is required")
    try:
        stored = save_upload(csv_file.file, csv_file.filename, csv_file.content_type, CSV_POLICY)
        summary = ImportService(db).import_file(stored)
    except ImportParseError as e:
        log.warning("CSV parse error: %s", e.details)
        raise _http_error(e)
    except UploadRejected as e:
        raise _http_error(e)
    return summary.to_dict()


@router.get("/{product_id}/history", summary="Stock change history, newest first")
def product_history(product_id: int, db: Session = Depends(get_db)):
    logs = ProductService(db).history(product_id)
    return [StockChangeOut.model_validate(entry).model_dump(mode="json") for entry in logs]


@router.get("/{product_id}", summary="Get product by id")
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        p = ProductService(db).get(product_id)
    except ProductServiceException as e:
        raise _http_error(e)
    return ProductOut.model_validate(p).model_dump()


@router.post("", status_code=201, summary="Create product")
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    try:
        p = ProductService(db).create(payload)
    except ProductServiceException as e:
        raise _http_error(e)
    return ProductOut.model_validate(p).model_dump()


@router.put("/{product_id}", summary="Update product")
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    try:
        p = ProductService(db).update(product_id, payload)
    except ProductServiceException as e:
        raise _http_error(e)
    return ProductOut.model_validate(p).model_dump()


@router.delete("/{product_id}", summary="Delete product")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    try:
        ProductService(db).delete(product_id)
    except ProductServiceException as e:
        raise _http_error(e)
    return {"deleted": True}
