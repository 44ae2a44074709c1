from asyncio import set_event_loop_policy
from importlib import import_module
from os import environ

from uvloop import EventLoopPolicy

set_event_loop_policy(EventLoopPolicy())


def load_handler(path: str):  # noqa: ANN201
    module, _, name = path.partition(':')

    if not name:
        raise ValueError('HOOKLINE_HANDLER must look like module:function')

    return getattr(import_module(module), name)


def main() -> None:
    from hookline import InteractionClient, Env
    from hookline.core import create_app
    from uvicorn import run

    env = Env.new()

    client = InteractionClient(
        load_handler(environ['HOOKLINE_HANDLER']),
        token=env.bot_token or None,
        public_key=env.public_key,
        application_id=env.explicit_application_id,
        deadline=env.deadline
    )

    run(
        create_app(client, env),
        host='0.0.0.0',
        port=int(environ.get('PORT', '8080')),
        forwarded_allow_ips='*'
    )


if __name__ == '__main__':
    main()
