#!/usr/bin/env python
"""
Django's command-line utility for administrative tasks.

TaskBoard - API Kanban
"""

import os
import sys


def _run(command):
    """Executa um comando do manage.py com o mesmo interpretador"""
    return os.system(f'"{sys.executable}" manage.py {command}')


def main():
    """Run administrative tasks."""

    # Configuração padrão para desenvolvimento
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    # Comandos customizados do TaskBoard
    if len(sys.argv) > 1:
        command = sys.argv[1]

        # Comando de setup inicial
        if command == 'setup':
            print("🚀 Configurando TaskBoard...")

            print("📊 Aplicando migrações...")
            if _run('migrate') != 0:
                print("❌ Erro nas migrações")
                return

            print("📁 Coletando arquivos estáticos...")
            _run('collectstatic --noinput')

            print("🌱 Populando banco com dados demo...")
            if _run('seed') == 0:
                print("✅ Setup concluído!")
            else:
                print("⚠️  Setup parcial concluído (sem dados demo)")
            return

        # Comando de configuração do banco
        elif command == 'setup-db':
            print("🐘 Configurando PostgreSQL...")

            commands = [
                "CREATE USER taskboard_user WITH PASSWORD 'taskboard123';",
                "CREATE DATABASE taskboard OWNER taskboard_user;",
                "GRANT ALL PRIVILEGES ON DATABASE taskboard TO taskboard_user;",
                "ALTER USER taskboard_user CREATEDB;"
            ]

            for cmd in commands:
                print(f"Executando: {cmd}")
                if os.system(f'psql -U postgres -h localhost -c "{cmd}"') != 0:
                    print("⚠️  Comando pode ter falhado (normal se já existir)")

            print("🧪 Testando conexão...")
            if os.system('psql -U taskboard_user -h localhost -d taskboard -c "SELECT version();"') == 0:
                print("✅ PostgreSQL configurado com sucesso!")
                print("📊 Execute agora: python manage.py setup")
            else:
                print("❌ Erro na configuração. Verifique se o PostgreSQL está rodando e o psql no PATH")
            return

        elif command == 'backup':
            print("💾 Criando backup do banco...")
            from datetime import datetime
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            backup_file = f"backup_taskboard_{timestamp}.json"
            _run(f'dumpdata core --indent 2 > {backup_file}')
            print(f"✅ Backup criado: {backup_file}")
            return

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
