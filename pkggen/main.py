from pkggen.api.main import app

if __name__ == "__main__":
    import os
    import uvicorn
    host = os.getenv("PKGGEN_HOST", "0.0.0.0")
    port = int(os.getenv("PKGGEN_PORT", "8001"))
    uvicorn.run(app, host=host, port=port)
