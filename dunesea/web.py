"""Flask application for the Dune Sea Diagnostics site.

Serves the static website, uploaded images and the JSON API used by the
public pages and the management mode:

- Schedule: pending requests and booked jobs
- Calendar: week grid with a status for every slot
- Availability: weekly hours and blocked slots
- Inventory and gallery (with image uploads)
- Contact form

Run with: python server.py
"""
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request, send_file
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from dunesea import config
from dunesea.auth import ADMIN_PIN_HEADER, AdminGate
from dunesea.availability import AvailabilityBook, parse_date
from dunesea.config import Settings
from dunesea.contact import ContactInbox
from dunesea.errors import InvalidFieldError, PayloadTooLargeError, SiteError
from dunesea.gallery import Gallery
from dunesea.inventory import Inventory
from dunesea.logging_config import RequestIDMiddleware, get_logger, setup_structured_logging
from dunesea.mailer import Mailer
from dunesea.scheduling import Schedule, parse_start
from dunesea.store import JsonStore
from dunesea.uploads import UploadStore, content_type_for
from dunesea.week_grid import WeekGrid

logger = get_logger(__name__)

TOO_LARGE_MESSAGE = "Payload too large. Please use a smaller image (try exporting under ~5MB)."

STATIC_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".txt": "text/plain; charset=utf-8",
}

UPLOAD_CACHE_CONTROL = "public, max-age=86400"


def _text(body: str, status: int) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def _payload() -> Dict[str, Any]:
    """JSON body of the request; anything that isn't a JSON object counts as {}."""
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def resolve_site_file(site_root: Path, url_path: str) -> Tuple[int, Optional[Path]]:
    """
    Map a URL path onto a file of the static site.

    "/" and paths ending in "/" serve index.html; "/services" serves
    services.html when it exists.

    Returns:
        (200, file), (403, None) for paths escaping the site root,
        or (404, None)
    """
    root = site_root.resolve()
    try:
        if not url_path or url_path.endswith("/"):
            target = root / "index.html"
        else:
            target = root / url_path.lstrip("/")
            if not target.suffix:
                html = target.with_name(target.name + ".html")
                if html.exists():
                    target = html

        resolved = target.resolve()
        if not resolved.is_relative_to(root):
            return 403, None
        if not resolved.is_file():
            return 404, None
    except ValueError:
        # embedded null byte
        return 404, None
    return 200, resolved


def create_app(settings: Optional[Settings] = None, mailer: Optional[Mailer] = None) -> Flask:
    """
    Build the site application.

    Args:
        settings: Deployment settings (default: read from the environment)
        mailer: Outbound mail (default: SMTP per settings)

    Returns:
        Flask app. Domain services are reachable through
        app.extensions["dunesea"].
    """
    settings = settings or Settings.from_env()
    mailer = mailer if mailer is not None else Mailer(settings)

    app = Flask(__name__, static_folder=None)
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_BODY_BYTES
    CORS(app, expose_headers=[RequestIDMiddleware.HEADER])
    app.wsgi_app = RequestIDMiddleware(app.wsgi_app)

    store = JsonStore(settings.data_dir)
    uploads = UploadStore(store.uploads_dir)
    uploads.ensure_default_image()

    schedule = Schedule(store)
    availability = AvailabilityBook(store)
    grid = WeekGrid(schedule, availability, settings.timezone)
    inventory = Inventory(store, uploads)
    gallery = Gallery(store, uploads)
    inbox = ContactInbox(store, mailer)
    gate = AdminGate(settings.admin_pin)

    app.extensions["dunesea"] = {
        "settings": settings,
        "store": store,
        "uploads": uploads,
        "schedule": schedule,
        "availability": availability,
        "grid": grid,
        "inventory": inventory,
        "gallery": gallery,
        "inbox": inbox,
        "mailer": mailer,
        "gate": gate,
    }

    logger.info(
        "app.loaded",
        data_dir=str(settings.data_dir),
        site_root=str(settings.site_root),
        booked=len(schedule.booked),
        pending=len(schedule.pending),
        admin_pin=gate.enabled,
    )

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            gate.check(request.headers.get(ADMIN_PIN_HEADER))
            return view(*args, **kwargs)
        return wrapper

    def slot_from_payload(payload: Dict[str, Any]) -> Tuple[Any, Any]:
        # The calendar sends {startISO}; the blocks editor sends {date, time}
        if payload.get("startISO") and not payload.get("date"):
            start = parse_start(payload["startISO"])
            if start is None:
                raise InvalidFieldError("Invalid startISO")
            local = start.astimezone(grid.tz)
            return local.date().isoformat(), local.strftime("%H:%M")
        return payload.get("date"), payload.get("time")

    # ---------- Errors ----------

    @app.errorhandler(SiteError)
    def handle_site_error(e: SiteError):
        return jsonify({"ok": False, "error": e.message}), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        logger.warning("request.too_large", path=request.path, content_length=request.content_length)
        return handle_site_error(PayloadTooLargeError(TOO_LARGE_MESSAGE))

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return e
        logger.exception("request.failed", path=request.path, method=request.method)
        return jsonify({"ok": False, "error": "Internal Server Error"}), 500

    # ---------- Health ----------

    @app.route('/health', methods=['GET'])
    def health_check():
        return _text("ok", 200)

    # ---------- Schedule ----------

    @app.route('/api/schedule', methods=['GET'])
    def get_schedule():
        return jsonify({"ok": True, **schedule.snapshot()})

    @app.route('/api/schedule/request', methods=['POST'])
    def request_appointment():
        """Customer booking request; the service inbox is emailed before replying."""
        appt = schedule.request(_payload())
        mailer.send_booking_request(appt)
        return jsonify({"ok": True, "id": appt.id, "pendingCount": len(schedule.pending)})

    @app.route('/api/schedule/book', methods=['POST'])
    @admin_required
    def book_appointment():
        appt = schedule.book(_payload())
        return jsonify({"ok": True, "id": appt.id, "bookedCount": len(schedule.booked)})

    @app.route('/api/schedule/accept', methods=['POST'])
    @admin_required
    def accept_appointment():
        appt = schedule.accept(str(_payload().get("id") or ""))
        return jsonify({"ok": True, "id": appt.id})

    @app.route('/api/schedule/reject', methods=['POST'])
    @admin_required
    def reject_appointment():
        schedule.reject(str(_payload().get("id") or ""))
        return jsonify({"ok": True})

    @app.route('/api/schedule/cancel', methods=['POST'])
    @admin_required
    def cancel_appointment():
        schedule.cancel(str(_payload().get("id") or ""))
        return jsonify({"ok": True})

    @app.route('/api/schedule/delete', methods=['POST'])
    @admin_required
    def delete_appointment():
        removed_from = schedule.delete(str(_payload().get("id") or ""))
        return jsonify({"ok": True, "removedFrom": removed_from})

    # ---------- Calendar ----------

    @app.route('/api/calendar', methods=['GET'])
    def get_calendar():
        """Week grid starting at ?start=YYYY-MM-DD (default: this week's Sunday)."""
        raw_start = request.args.get("start", "").strip()
        start = None
        if raw_start:
            start = parse_date(raw_start)
            if start is None:
                raise InvalidFieldError("Invalid start")
        return jsonify({"ok": True, **grid.build(start)})

    # ---------- Availability ----------

    @app.route('/api/availability', methods=['GET'])
    def get_availability():
        return jsonify({"ok": True, "availability": availability.get().to_wire()})

    @app.route('/api/availability/set', methods=['POST'])
    @admin_required
    def set_availability():
        payload = _payload()
        updated = availability.replace(payload.get("availability", payload))
        return jsonify({"ok": True, "availability": updated.to_wire()})

    @app.route('/api/availability/weekly', methods=['POST'])
    @admin_required
    def set_weekly():
        payload = _payload()
        updated = availability.set_weekly(payload.get("weekly", payload))
        return jsonify({"ok": True, "availability": updated.to_wire()})

    @app.route('/api/availability/block', methods=['POST'])
    @admin_required
    def block_slot():
        day, time_str = slot_from_payload(_payload())
        times = availability.block_slot(day, time_str)
        return jsonify({"ok": True, "date": parse_date(day).isoformat(), "blocks": times})

    @app.route('/api/availability/unblock', methods=['POST'])
    @admin_required
    def unblock_slot():
        day, time_str = slot_from_payload(_payload())
        times = availability.unblock_slot(day, time_str)
        return jsonify({"ok": True, "date": parse_date(day).isoformat(), "blocks": times})

    @app.route('/api/availability/block-day', methods=['POST'])
    @admin_required
    def block_day():
        day = _payload().get("date")
        times = availability.block_day(day)
        return jsonify({"ok": True, "date": parse_date(day).isoformat(), "blocks": times})

    @app.route('/api/availability/clear-day', methods=['POST'])
    @admin_required
    def clear_day():
        availability.clear_day(_payload().get("date"))
        return jsonify({"ok": True})

    # ---------- Inventory ----------

    @app.route('/api/inventory', methods=['GET'])
    def get_inventory():
        items = [item.to_wire() for item in inventory.list()]
        return jsonify({"ok": True, "items": items, "inStock": inventory.in_stock()})

    @app.route('/api/inventory/upsert', methods=['POST'])
    @admin_required
    def upsert_inventory():
        """
        Payload:
            {"item": {...}, "imageDataUrl": "data:image/png;base64,...", "imageName": "..."}
        A bare item object is accepted too.
        """
        payload = _payload()
        raw_item = payload["item"] if isinstance(payload.get("item"), dict) else payload
        image = payload.get("imageDataUrl") or payload.get("image") or payload.get("imageBase64")
        image_name = payload.get("imageName") or raw_item.get("imageName") or "upload"

        item = inventory.upsert(raw_item, image, image_name)
        return jsonify({"ok": True, "item": item.to_wire()})

    @app.route('/api/inventory/delete', methods=['POST'])
    @admin_required
    def delete_inventory():
        inventory.delete(_payload().get("id"))
        return jsonify({"ok": True})

    # ---------- Gallery ----------

    @app.route('/api/gallery', methods=['GET'])
    def get_gallery():
        return jsonify({"ok": True, "photos": [photo.to_wire() for photo in gallery.list()]})

    @app.route('/api/gallery/add', methods=['POST'])
    @admin_required
    def add_photo():
        payload = _payload()
        image = payload.get("imageDataUrl") or payload.get("image") or payload.get("imageBase64")
        photo = gallery.add(payload.get("caption"), image, payload.get("imageName") or "gallery")
        return jsonify({"ok": True, "photo": photo.to_wire()})

    @app.route('/api/gallery/delete', methods=['POST'])
    @admin_required
    def delete_photo():
        gallery.delete(_payload().get("id"))
        return jsonify({"ok": True})

    # ---------- Contact / admin ----------

    @app.route('/api/contact', methods=['POST'])
    def receive_contact():
        inbox.receive(_payload())
        return jsonify({"ok": True})

    @app.route('/api/admin/verify', methods=['POST'])
    def verify_admin():
        gate.verify(_payload().get("pin"))
        return jsonify({"ok": True, "pinRequired": gate.enabled})

    # ---------- Files ----------

    @app.route('/uploads/<path:name>', methods=['GET'])
    def get_upload(name):
        path = uploads.resolve(name)
        if path is None:
            return _text("not found", 404)
        response = send_file(path, mimetype=content_type_for(path.suffix))
        response.headers["Cache-Control"] = UPLOAD_CACHE_CONTROL
        return response

    @app.route('/', defaults={'path': ''}, methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
    @app.route('/<path:path>', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
    def static_site(path):
        # Anything else under /api, and any non-GET, is an unknown route
        if request.method != 'GET' or path == "api" or path.startswith("api/"):
            return _text("not found", 404)

        status, file_path = resolve_site_file(settings.site_root, path)
        if status == 403:
            return _text("Forbidden", 403)
        if status == 404:
            return _text("Not Found", 404)
        return send_file(file_path, mimetype=STATIC_TYPES.get(file_path.suffix.lower(), "application/octet-stream"))

    return app


def print_startup_info(settings: Settings, app: Flask):
    """Print server startup information."""
    services = app.extensions["dunesea"]
    business = config.BUSINESS
    hours = config.SCHEDULE_SETTINGS

    print("=" * 70)
    print(f"{business['name'].upper()} SITE SERVER")
    print("=" * 70)
    print(f"\nServer: http://localhost:{settings.port}  (bound to {settings.host})")
    print(f"Site root: {settings.site_root}")
    print(f"Data dir: {settings.data_dir}")
    print(f"Timezone: {settings.timezone}")
    print(f"\nSchedule: {len(services['schedule'].booked)} booked, {len(services['schedule'].pending)} pending")
    print(f"   Grid: {hours['open_hour']:02d}:00 - {hours['close_hour']:02d}:00, "
          f"{hours['slot_minutes']} minute slots")
    print(f"Admin PIN: {'required' if services['gate'].enabled else 'not set (admin endpoints open)'}")
    print(f"Email: {'configured' if services['mailer'].configured else 'not configured (emails skipped)'}")

    print("\nEndpoints:")
    print("   GET   /api/schedule                 - Booked + pending")
    print("   POST  /api/schedule/request         - Customer booking request")
    print("   POST  /api/schedule/{book,accept,reject,cancel,delete}  (admin)")
    print("   GET   /api/calendar?start=YYYY-MM-DD - Week grid")
    print("   GET   /api/availability             - Weekly hours + blocks")
    print("   POST  /api/availability/{set,weekly,block,unblock,block-day,clear-day}  (admin)")
    print("   GET   /api/inventory                - Inventory")
    print("   GET   /api/gallery                  - Gallery")
    print("   POST  /api/contact                  - Contact form")
    print("   GET   /health                       - Health check")

    print("\nServer ready! Waiting for requests...")
    print("=" * 70)


def main():
    settings = Settings.from_env()
    setup_structured_logging(settings.log_level)
    app = create_app(settings)
    print_startup_info(settings, app)
    app.run(host=settings.host, port=settings.port)
