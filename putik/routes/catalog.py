# putik/routes/catalog.py
from flask import Blueprint, request
from putik.db.session import get_session
from putik.routes.common import ok, fail_from_exception, require_login
from putik.schemas.dto.catalog_dto import VehicleDTO, PartTypeDTO, MechanicDTO, PartDTO, PartFilterDTO
from putik.services.catalog_service import CatalogService, PartFilter
from putik.services.availability_service import AvailabilityService

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


@catalog_bp.route('/vehicles')
def list_vehicles():
    check = require_login()
    if check:
        return check

    db = get_session()
    try:
        vehicles = CatalogService(db).list_vehicles()
        return ok([VehicleDTO.from_orm_model(v).model_dump(mode='json') for v in vehicles])
    except Exception as e:
        return fail_from_exception(e, 'load vehicles')
    finally:
        db.close()


@catalog_bp.route('/types')
def list_types():
    check = require_login()
    if check:
        return check

    db = get_session()
    try:
        types = CatalogService(db).list_types()
        return ok([PartTypeDTO.from_orm_model(t).model_dump(mode='json') for t in types])
    except Exception as e:
        return fail_from_exception(e, 'load part types')
    finally:
        db.close()


@catalog_bp.route('/mechanics')
def list_mechanics():
    check = require_login()
    if check:
        return check

    db = get_session()
    try:
        mechanics = CatalogService(db).list_mechanics()
        return ok([MechanicDTO.from_orm_model(m).model_dump(mode='json') for m in mechanics])
    except Exception as e:
        return fail_from_exception(e, 'load mechanics')
    finally:
        db.close()


@catalog_bp.route('/parts')
def list_parts():
    """Parts with live availability; ?vehicle_id=&search=&types=1,2"""
    check = require_login()
    if check:
        return check

    db = get_session()
    try:
        part_filter = PartFilter.from_args(request.args)
        parts = CatalogService(db).list_parts(part_filter)
        availability = AvailabilityService(db).for_parts(parts)
        return ok({
            'filter': PartFilterDTO.from_orm_model(part_filter).model_dump(mode='json'),
            'parts': [
                PartDTO.from_orm_model(p, availability.get(p.id)).model_dump(mode='json')
                for p in parts
            ],
        })
    except Exception as e:
        return fail_from_exception(e, 'load parts')
    finally:
        db.close()
