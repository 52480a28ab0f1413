from flask import Flask
from feedback_app.services import policy

def make_app(key=None):
    app = Flask(__name__); app.config.update(SECRET_KEY="x", TESTING=True, ADMIN_API_KEY=key)
    return app

def _view():
    @policy.require_admin_key
    def v(): return "ok", 200
    return v

def test_open_when_no_key_configured():
    app = make_app()
    with app.test_request_context("/x"):
        assert _view()() == ("ok", 200)

def test_missing_key_is_401_json():
    app = make_app("s3cret")
    with app.test_request_context("/x"):
        r = _view()(); assert r[1] == 401 and r[0].json["error"] == "unauthorized"

def test_wrong_key_is_401_json():
    app = make_app("s3cret")
    with app.test_request_context("/x", headers={"X-Admin-Key": "guess"}):
        r = _view()(); assert r[1] == 401 and r[0].json["success"] is False

def test_right_key_passes():
    app = make_app("s3cret")
    with app.test_request_context("/x", headers={"X-Admin-Key": "s3cret"}):
        assert _view()() == ("ok", 200)

def test_admin_routes_gated_end_to_end(app, client, monkeypatch):
    monkeypatch.setitem(app.config, "ADMIN_API_KEY", "s3cret")
    assert client.get("/api/admin/statistics").status_code == 401
    assert client.post("/api/orders/complete", json={"order_id": "ORD-1"}).status_code == 401
    assert client.get("/api/admin/statistics", headers={"X-Admin-Key": "s3cret"}).status_code == 200
    # customer-facing token routes never need the key
    assert client.get("/api/feedback/validate/ffffffffffffffff").status_code == 400
