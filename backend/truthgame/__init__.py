from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
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

SAMPLE_CLAIMS = [
    ('Honey never spoils if it is sealed and stored properly.', 'TRUE', 'easy',
     'Archaeologists have found edible honey in ancient Egyptian tombs.'),
    ('Goldfish have a memory span of only three seconds.', 'FALSE', 'easy',
     'Goldfish can remember trained cues for months.'),
    ('Lightning never strikes the same place twice.', 'FALSE', 'easy',
     'Tall structures such as the Empire State Building are struck many times a year.'),
    ('Humans use only 10% of their brains.', 'FALSE', 'medium',
     'Imaging shows activity across virtually the whole brain.'),
    ('Vitamin C prevents the common cold.', 'MIXED', 'medium',
     'It does not prevent colds in general, but may shorten them slightly.'),
    ('The Great Wall of China is visible from the Moon with the naked eye.', 'FALSE', 'medium',
     'It is far too narrow to be seen from that distance.'),
    ('Bats are blind.', 'FALSE', 'hard',
     'All bat species can see; many also echolocate.'),
    ('Sugar makes children hyperactive.', 'MIXED', 'hard',
     'Controlled studies find no effect, though expectations change how adults perceive behaviour.'),
    ('Octopuses have three hearts.', 'TRUE', 'hard',
     'Two pump blood through the gills and one through the body.'),
    ('Bulls are enraged by the colour red.', 'FALSE', 'expert',
     'Bulls are red-green colour blind; they react to the movement of the cape.'),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from truthgame.routes import main
    flask_app.register_blueprint(main)

    from truthgame.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from truthgame.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with sample claims."""
        from truthgame.models import Claim
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for text, answer, difficulty, explanation in SAMPLE_CLAIMS:
                db.session.add(Claim(text=text, answer=answer, difficulty=difficulty, explanation=explanation))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
