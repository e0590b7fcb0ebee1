from functools import partial
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from . import config
from .api.routes import router
from .core.detector import DetectorHandle, FaceDetector
from .core.quality import QualityAnalyzer
from .logging_config import setup_logging

setup_logging(config.log_level())

# Initialize FastAPI app
app = FastAPI(title="Face Quality API")

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared resources, passed to routes through app.state
app.state.analyzer = QualityAnalyzer(config.load_thresholds())
app.state.detector = DetectorHandle(
    partial(FaceDetector.load, config.CASCADE_PATH, config.DETECT_MIN_FACE_PX)
)

# Mount routes
app.include_router(router, prefix="/api")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
