# putik/routes/editor.py
from flask import Blueprint, request, session
from putik.db.session import get_session
from putik.db.enums import UserRole
from putik.logger import get_logger
from putik.routes.common import (
    ok,
    fail,
    fail_from_exception,
    require_role,
    request_payload,
    parse_date,
    parse_int,
    today,
)
from putik.schemas.dto.booking_dto import BookingGroupDTO
from putik.schemas.dto.cart_dto import CustomizationDTO, WizardDTO
from putik.schemas.dto.catalog_dto import VehicleDTO, PartTypeDTO, PartDTO, PartFilterDTO
from putik.schemas.dto.leave_dto import MechanicAvailabilityDTO
from putik.schemas.error_type import ErrorType
from putik.services.availability_service import AvailabilityService
from putik.services.booking_group_service import BookingGroupService
from putik.services.booking_service import BookingService
from putik.services.booking_wizard import BookingWizard, WizardState
from putik.services.catalog_service import CatalogService, PartFilter
from putik.services.customization import Customization, CustomizationLine, max_allowed_for
from putik.services.leave_service import LeaveService
from putik.services.errors import NotFoundError

editor_bp = Blueprint('editor', __name__, url_prefix='/user/editor')

logger = get_logger(__name__)


# ======================================================
# 💾 Session state
# ======================================================

def _edit_group_id():
    return session.get('edit_group_id')


def _load_cart(catalog: CatalogService) -> Customization:
    data = session.get('cart')
    parts = catalog.parts_by_id(Customization.part_ids_in(data))
    return Customization.from_session(data, parts)


def _load_wizard() -> BookingWizard:
    return BookingWizard.from_session(session.get('wizard'))


def _save(cart: Customization = None, wizard: BookingWizard = None):
    if cart is not None:
        session['cart'] = cart.to_session()
    if wizard is not None:
        session['wizard'] = wizard.to_session()


def _limits(db, parts) -> dict:
    """part_id -> (availability, max_allowed) for the current mode"""
    edit_group_id = _edit_group_id()
    availability = AvailabilityService(db).for_parts(list(parts), edit_group_id=edit_group_id)
    edit_mode = edit_group_id is not None
    return {
        pid: (entry, max_allowed_for(entry, edit_mode))
        for pid, entry in availability.items()
    }


def _cart_payload(db, cart: Customization) -> dict:
    limits = _limits(db, [line.part for line in cart.lines])
    max_allowed = {pid: limit[1] for pid, limit in limits.items()}
    return CustomizationDTO.from_orm_model(cart, max_allowed, _edit_group_id()).model_dump(mode='json')


def _state_payload(db, cart: Customization, wizard: BookingWizard) -> dict:
    return {
        'cart': _cart_payload(db, cart),
        'wizard': WizardDTO.from_orm_model(wizard).model_dump(mode='json'),
        'edit_mode': _edit_group_id() is not None,
    }


def _load_filter(vehicle_id) -> PartFilter:
    return PartFilter.from_session(session.get('part_filter'), vehicle_id)


def _parts_payload(db, catalog: CatalogService, part_filter: PartFilter) -> dict:
    parts = catalog.list_parts(part_filter)
    limits = _limits(db, parts)
    return {
        'filter': PartFilterDTO.from_orm_model(part_filter).model_dump(mode='json'),
        'parts': [
            PartDTO.from_orm_model(p, *limits[p.id]).model_dump(mode='json')
            for p in parts
        ],
    }


def _seed_edit(db, group_id: int) -> Customization:
    '''
    Enter edit mode for a pending group: the cart becomes the group's rows.
    '''
    booking_service = BookingService(db, AvailabilityService(db))
    rows, vehicle_id = booking_service.load_group_for_edit(group_id=group_id, user_id=session['user_id'])
    cart = Customization(vehicle_id=vehicle_id)
    for row in rows:
        if row.part is not None and (row.quantity or 0) > 0:
            cart.lines.append(CustomizationLine(part=row.part, quantity=row.quantity))
    return cart


# ======================================================
# 📄 Editor page
# ======================================================

@editor_bp.route('', methods=['GET'])
def editor():
    """
    Editor page data: vehicles, types, parts of the selected vehicle with
    availability, the cart and the booking wizard.
    ?edit_booking=<group id> enters edit mode for that group.
    """
    check = require_role(UserRole.user)
    if check:
        return check

    db = get_session()
    try:
        catalog = CatalogService(db)
        wizard = _load_wizard()

        edit_booking = request.args.get('edit_booking', '').strip()
        if edit_booking:
            group_id = parse_int(edit_booking, 'edit_booking')
            if group_id != _edit_group_id():
                cart = _seed_edit(db, group_id)
                session['edit_group_id'] = group_id
                wizard.reset()
            else:
                cart = _load_cart(catalog)
        else:
            cart = _load_cart(catalog)

        vehicles = catalog.list_vehicles()
        requested_vehicle = request.args.get('vehicle_id', '').strip()
        if requested_vehicle and _edit_group_id() is None:
            vehicle_id = parse_int(requested_vehicle, 'vehicle_id')
            if catalog.get_vehicle(vehicle_id) is None:
                raise NotFoundError(f"Vehicle {vehicle_id} not found")
            cart.vehicle_id = vehicle_id
        if cart.vehicle_id is None and vehicles:
            cart.vehicle_id = vehicles[0].id

        part_filter = _load_filter(cart.vehicle_id)
        if 'search' in request.args or 'types' in request.args:
            part_filter = PartFilter.from_args(request.args)
            part_filter.vehicle_id = cart.vehicle_id

        _save(cart, wizard)
        session['part_filter'] = part_filter.to_session()
        payload = {
            'user': {'name': session.get('user_name')},
            'vehicles': [VehicleDTO.from_orm_model(v).model_dump(mode='json') for v in vehicles],
            'types': [PartTypeDTO.from_orm_model(t).model_dump(mode='json') for t in catalog.list_types()],
        }
        payload.update(_parts_payload(db, catalog, part_filter))
        payload.update(_state_payload(db, cart, wizard))
        return ok(payload)
    except Exception as e:
        return fail_from_exception(e, 'load editor')
    finally:
        db.close()


@editor_bp.route('/filter', methods=['POST'])
def update_filter():
    """
    Header controls: {"search": str} sets the term, {"toggle_type": id}
    flips one type, {"clear_types": true} drops all type filters.
    Returns the filter and the parts list it selects.
    """
    check = require_role(UserRole.user)
    if check:
        return check

    payload = request_payload(request)
    db = get_session()
    try:
        catalog = CatalogService(db)
        cart = _load_cart(catalog)
        part_filter = _load_filter(cart.vehicle_id)

        if 'search' in payload:
            part_filter.set_search_term(payload.get('search'))
        if payload.get('clear_types'):
            part_filter.clear_types()
        if payload.get('toggle_type') is not None:
            part_filter.toggle_type(parse_int(payload.get('toggle_type'), 'toggle_type'))

        session['part_filter'] = part_filter.to_session()
        return ok(_parts_payload(db, catalog, part_filter))
    except Exception as e:
        return fail_from_exception(e, 'update filter')
    finally:
        db.close()


@editor_bp.route('/vehicle', methods=['POST'])
def select_vehicle():
    check = require_role(UserRole.user)
    if check:
        return check

    payload = request_payload(request)
    db = get_session()
    try:
        if _edit_group_id() is not None:
            return fail(ErrorType.BUSINESS_RULE_ERROR, 'Vehicle cannot be changed while editing a booking')
        vehicle_id = parse_int(payload.get('vehicle_id'), 'vehicle_id')
        catalog = CatalogService(db)
        if catalog.get_vehicle(vehicle_id) is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        cart = _load_cart(catalog)
        cart.vehicle_id = vehicle_id
        wizard = _load_wizard()
        _save(cart, wizard)
        return ok(_state_payload(db, cart, wizard))
    except Exception as e:
        return fail_from_exception(e, 'select vehicle')
    finally:
        db.close()


# ======================================================
# 🛒 Cart
# ======================================================

def _load_part_for_cart(catalog: CatalogService, cart: Customization, part_id: int):
    part = catalog.get_part(part_id)
    if part is None:
        raise NotFoundError(f"Part {part_id} not found")
    if cart.vehicle_id is None:
        cart.vehicle_id = part.vehicle_id
    if part.vehicle_id != cart.vehicle_id:
        raise ValueError('Part does not fit the selected vehicle')
    return part


@editor_bp.route('/cart/add', methods=['POST'])
def add_part():
    """One more unit; silently ignored at the availability limit"""
    check = require_role(UserRole.user)
    if check:
        return check

    payload = request_payload(request)
    db = get_session()
    try:
        catalog = CatalogService(db)
        cart = _load_cart(catalog)
        part = _load_part_for_cart(catalog, cart, parse_int(payload.get('part_id'), 'part_id'))
        _, max_allowed = _limits(db, [part])[part.id]
        changed = cart.add_part(part, max_allowed)
        wizard = _load_wizard()
        _save(cart, wizard)
        result = _state_payload(db, cart, wizard)
        result['changed'] = changed
        return ok(result)
    except Exception as e:
        return fail_from_exception(e, 'update customization')
    finally:
        db.close()


@editor_bp.route('/cart/update', methods=['POST'])
def update_quantity():
    """Set a line's quantity, clamped to availability; 0 removes it"""
    check = require_role(UserRole.user)
    if check:
        return check

    payload = request_payload(request)
    db = get_session()
    try:
        catalog = CatalogService(db)
        cart = _load_cart(catalog)
        part = _load_part_for_cart(catalog, cart, parse_int(payload.get('part_id'), 'part_id'))
        quantity = parse_int(payload.get('quantity'), 'quantity')
        _, max_allowed = _limits(db, [part])[part.id]
        changed = cart.update_quantity(part, quantity, max_allowed)
        wizard = _load_wizard()
        _save(cart, wizard)
        result = _state_payload(db, cart, wizard)
        result['changed'] = changed
        return ok(result)
    except Exception as e:
        return fail_from_exception(e, 'update customization')
    finally:
        db.close()


@editor_bp.route('/cancel-edit', methods=['POST'])
def cancel_edit():
    check = require_role(UserRole.user)
    if check:
        return check

    db = get_session()
    try:
        session.pop('edit_group_id', None)
        cart = _load_cart(CatalogService(db))
        cart.clear()
        wizard = BookingWizard()
        _save(cart, wizard)
        return ok(_state_payload(db, cart, wizard))
    except Exception as e:
        return fail_from_exception(e, 'cancel edit')
    finally:
        db.close()


# ======================================================
# 📅 Booking wizard
# ======================================================

@editor_bp.route('/booking/date', methods=['POST'])
def select_date():
    check = require_role(UserRole.user)
    if check:
        return check

    payload = request_payload(request)
    db = get_session()
    try:
        cart = _load_cart(CatalogService(db))
        wizard = _load_wizard()
        wizard.select_date(
            parse_date(payload.get('date')),
            today=today(),
            cart_empty=cart.is_empty(),
        )
        _save(wizard=wizard)
        return ok(_state_payload(db, cart, wizard))
    except Exception as e:
        return fail_from_exception(e, 'select date')
    finally:
        db.close()


@editor_bp.route('/booking/mechanics', methods=['GET'])
def mechanic_choices():
    """Mechanics with advisory availability on the selected date"""
    check = require_role(UserRole.user)
    if check:
        return check

    db = get_session()
    try:
        wizard = _load_wizard()
        if wizard.selected_date is None:
            return fail(ErrorType.INPUT_ERROR, 'Select a date first')
        mechanics = CatalogService(db).list_mechanics()
        availability = LeaveService(db).mechanic_availability(mechanics, wizard.selected_date, today=today())
        return ok({
            'date': wizard.selected_date.isoformat(),
            'selected_mechanic_id': wizard.mechanic_id,
            'mechanics': [
                MechanicAvailabilityDTO.from_orm_model(m, availability.get(m.id)).model_dump(mode='json')
                for m in mechanics
            ],
        })
    except Exception as e:
        return fail_from_exception(e, 'load mechanics')
    finally:
        db.close()


@editor_bp.route('/booking/mechanic', methods=['POST'])
def select_mechanic():
    check = require_role(UserRole.user)
    if check:
        return check

    payload = request_payload(request)
    db = get_session()
    try:
        wizard = _load_wizard()
        mechanic_id = parse_int(payload.get('mechanic_id'), 'mechanic_id')
        mechanic = CatalogService(db).get_mechanic(mechanic_id)
        if mechanic is None:
            raise NotFoundError(f"Mechanic {mechanic_id} not found")
        is_available = None
        if wizard.selected_date is not None:
            availability = LeaveService(db).mechanic_availability([mechanic], wizard.selected_date, today=today())
            is_available = availability[mechanic.id]['is_available']
        wizard.select_mechanic(mechanic.id, is_available=is_available)
        _save(wizard=wizard)
        return ok(_state_payload(db, _load_cart(CatalogService(db)), wizard))
    except Exception as e:
        return fail_from_exception(e, 'select mechanic')
    finally:
        db.close()


@editor_bp.route('/booking/back', methods=['POST'])
def wizard_back():
    check = require_role(UserRole.user)
    if check:
        return check

    db = get_session()
    try:
        wizard = _load_wizard()
        wizard.back()
        _save(wizard=wizard)
        return ok(_state_payload(db, _load_cart(CatalogService(db)), wizard))
    except Exception as e:
        return fail_from_exception(e, 'go back')
    finally:
        db.close()


@editor_bp.route('/booking/cancel', methods=['POST'])
def wizard_cancel():
    """Close the wizard; the cart stays"""
    check = require_role(UserRole.user)
    if check:
        return check

    db = get_session()
    try:
        wizard = _load_wizard()
        wizard.cancel()
        _save(wizard=wizard)
        return ok(_state_payload(db, _load_cart(CatalogService(db)), wizard))
    except Exception as e:
        return fail_from_exception(e, 'cancel booking')
    finally:
        db.close()


@editor_bp.route('/booking/confirm', methods=['POST'])
def confirm_booking():
    """
    Submit the cart as a new booking group, or replace the group being
    edited. One transaction: on any failure nothing is written and the
    wizard goes back to the confirmation step.
    Once committed, the editor is reset even if building the response fails.
    """
    check = require_role(UserRole.user)
    if check:
        return check

    db = get_session()
    catalog = CatalogService(db)
    wizard = _load_wizard()
    edit_group_id = _edit_group_id()
    try:
        # 1️⃣ write the group
        try:
            cart = _load_cart(catalog)
            wizard.confirm()
            lines = [(line.part.id, line.quantity) for line in cart.lines_for_vehicle()]

            booking_service = BookingService(db, AvailabilityService(db))
            if edit_group_id is not None:
                group, _ = booking_service.update_booking_group(
                    group_id=edit_group_id,
                    user_id=session['user_id'],
                    mechanic_id=wizard.mechanic_id,
                    booking_date=wizard.selected_date,
                    lines=lines,
                    today=today(),
                )
            else:
                group, _ = booking_service.submit_booking(
                    user_id=session['user_id'],
                    mechanic_id=wizard.mechanic_id,
                    booking_date=wizard.selected_date,
                    lines=lines,
                    today=today(),
                )
            group_id = group.id
            db.commit()
        except Exception as e:
            db.rollback()
            if wizard.state == WizardState.confirmed:
                wizard.fail()
                _save(wizard=wizard)
            logger.warning(f"[editor] booking not saved user_id={session.get('user_id')}: {e}")
            return fail_from_exception(e, 'submit booking')

        # 2️⃣ fresh editor: empty cart, wizard closed, edit mode left
        wizard.mark_submitted()
        submitted = WizardDTO.from_orm_model(wizard).model_dump(mode='json')
        session.pop('edit_group_id', None)
        cart.clear()
        wizard.reset()
        _save(cart, wizard)

        # 3️⃣ respond with the saved group
        status = 201 if edit_group_id is None else 200
        try:
            view = BookingGroupService(db).get_group(group_id)
            group_payload = BookingGroupDTO.from_orm_model(view).model_dump(mode='json')
        except Exception:
            logger.exception(f"[editor] booking group {group_id} saved but could not be loaded")
            group_payload = {'booking_group_id': group_id}
        return ok({
            'booking_group': group_payload,
            'wizard': submitted,
            'edited': edit_group_id is not None,
        }, status)
    finally:
        db.close()
