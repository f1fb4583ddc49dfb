from fastapi import FastAPI
import analytics
from config import VERSION, load_config
from geolookup import geolookup
from logger import logger
from proxy import client_addr

app = FastAPI(title="session-analytics")

config = load_config()
app.state.stop_analytics = None

@app.on_event("startup")
async def startup():
    logger.info(f"Starting session-analytics {VERSION}")

    if config.proxy_addr:
        client_addr.set(config.proxy_addr)

    geolookup.url = config.geo_lookup_url
    geolookup.ca_cert = config.ca_cert
    geolookup.start()
    logger.info(f"Geolookup started against {config.geo_lookup_url}")

    if config.analytics.enabled:
        app.state.stop_analytics = analytics.start(config, VERSION)
        logger.info(f"Analytics started for device {config.client.device_id}")
    else:
        logger.info("Analytics disabled")

@app.on_event("shutdown")
async def shutdown():
    if app.state.stop_analytics is not None:
        await app.state.stop_analytics()
        app.state.stop_analytics = None
        logger.info("Analytics session ended")
    await geolookup.close()
    logger.info("Geolookup closed")

@app.get("/health")
async def health():
    return {"status": "ok"}

@app.get("/version")
async def get_version():
    return {"version": VERSION}

@app.get("/session")
async def get_session():
    return {
        "device_id": config.client.device_id,
        "analytics_enabled": config.analytics.enabled
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
