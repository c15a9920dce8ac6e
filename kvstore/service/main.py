"""FastAPIアプリケーション。

1つのエンジンをHTTPで公開するKVサービス。値は直列化済みのバイト列として
そのまま扱い、Codec はクライアント（HttpStore）側で適用する。

起動: uvicorn kvstore.service.main:app --port 8080
"""

from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request, Response

from kvstore.dependencies import get_engine
from kvstore.errors import AdmissionError
from kvstore.interfaces.engine import Engine

EngineDep = Annotated[Engine, Depends(get_engine)]

app = FastAPI(
    title="キー・バリューストア API",
    version="0.1.0",
)


# ---------- エンドポイント ----------


@app.get("/api/health")
async def health_check():
    """ヘルスチェック。"""
    return {"status": "ok"}


@app.get("/api/kv/{key:path}")
async def get_value(key: str, engine: EngineDep):
    """キーの値をバイト列で返す。存在しなければ 404。"""
    data = engine.get(key)
    if data is None:
        raise HTTPException(status_code=404, detail="Key not found")
    return Response(content=data, media_type="application/octet-stream")


@app.put("/api/kv/{key:path}", status_code=204)
async def put_value(key: str, request: Request, engine: EngineDep):
    """リクエストボディをそのまま格納する。受け入れ拒否なら 409。"""
    data = await request.body()
    try:
        engine.set(key, data)
    except AdmissionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return Response(status_code=204)


@app.delete("/api/kv/{key:path}", status_code=204)
async def delete_value(key: str, engine: EngineDep):
    """キーを削除する。存在しない場合も 204。"""
    engine.delete(key)
    return Response(status_code=204)
