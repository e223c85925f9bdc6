from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from datetime import timedelta
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from contest.main import main
    flask_app.register_blueprint(main)

    from contest.api.contest import contest
    flask_app.register_blueprint(contest, url_prefix='/api')

    # Handlers bind to the already initialized socketio instance
    from contest.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo event."""
        from contest.models import Event, Code
        from contest.services.voting.clock import current_time
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            now = current_time()
            event = Event(
                name='Costume Contest',
                registration_deadline=now + timedelta(days=1),
                voting_deadline=now + timedelta(days=1, hours=3),
            )
            db.session.add(event)
            db.session.flush()

            admin = Code(event_id=event.id, is_admin=True)
            db.session.add(admin)
            voters = [Code(event_id=event.id) for _ in range(int(flask_app.config.get('SEED_VOTER_CODES', 20)))]
            db.session.add_all(voters)
            db.session.commit()

            print(f'Database has been reset and seeded! event={event.id}')
            print(f'admin code: {admin.auth_code}')
            for v in voters:
                print(f'voter code: {v.auth_code}')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
