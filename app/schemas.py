from pydantic import BaseModel, Field, HttpUrl


class AnalyzeRequest(BaseModel):
    # mode="cron" dispara o lote; sem mode, `url` é obrigatória
    mode: str | None = None
    url: str | None = None
    userId: str | None = None


class PushRequest(BaseModel):
    userId: str = Field(min_length=1)
    title: str
    body: str = ""
    url: str = "/"


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class SubscriptionRequest(BaseModel):
    userId: str = Field(min_length=1)
    endpoint: HttpUrl
    keys: SubscriptionKeys


class UnsubscribeRequest(BaseModel):
    userId: str = Field(min_length=1)
    # sem endpoint, todas as subscriptions do usuário são removidas
    endpoint: str | None = None
