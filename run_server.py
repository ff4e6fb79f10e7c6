import uvicorn
import os

if __name__ == "__main__":
    kb_path = os.environ.get("INTERPRETATION_KB_PATH", os.path.join("data", "gukguk_db.json"))

    print("Starting Interpretation API Server...")
    print(f"Knowledge base: {kb_path}")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "interpretation.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
