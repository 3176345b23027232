# apiprobe/store.py
# scan_id -> {"status", "endpoints", "results", "error"}; lives as long as the process
store = {}


def new_scan(scan_id, config):
    store[scan_id] = {
        "status": "in_progress",
        "endpoints": len(config.endpoints),
        "results": [],
        "error": None,
    }
    return {"scan_id": scan_id, "status": "in_progress", "endpoints": len(config.endpoints)}


def get_status(scan_id):
    entry = store.get(scan_id)
    if entry is None:
        return {"scan_id": scan_id, "status": "not_found"}
    return {"scan_id": scan_id, "status": entry["status"], "endpoints": entry["endpoints"]}


def get_results(scan_id):
    entry = store.get(scan_id)
    if entry is None:
        return {"scan_id": scan_id, "status": "not_found", "results": []}
    return {
        "scan_id": scan_id,
        "status": entry["status"],
        "results": entry["results"],
        "error": entry["error"],
    }
