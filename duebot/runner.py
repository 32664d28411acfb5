import uvicorn

from duebot.utils.config import S


def main():
    uvicorn.run("duebot.web.server:app", host="0.0.0.0", port=S.port,
                proxy_headers=True, forwarded_allow_ips="*")


if __name__ == "__main__":
    main()
